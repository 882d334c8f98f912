"""Tests for runtime settings defaults and startup validation."""

import pytest
from pydantic import ValidationError

from mandate_import.config import AppSettings, SettingsLoadError, config_load_settings


def test_settings_defaults_match_import_engine_expectations() -> None:
    """Expose the documented import defaults without any environment overrides.

    Returns:
        None: Assertions validate default values.

    Raises:
        AssertionError: Raised when a default drifts.
    """

    settings = AppSettings(_env_file=None)

    assert settings.import_value_batch_size == 50
    assert settings.import_batch_lock_wait_ms == 10_000
    assert settings.import_batch_statement_timeout_ms == 30_000
    assert settings.import_session_grace_seconds == 300.0
    assert settings.import_session_idle_ttl_seconds == 3600.0
    assert settings.import_day_first is True
    assert settings.import_max_valid_date is None
    assert settings.max_mandates_per_organization is None


def test_settings_normalize_log_level() -> None:
    """Upper-case accepted log levels and reject unknown names."""

    assert AppSettings(_env_file=None, log_level=" debug ").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, log_level="chatty")


@pytest.mark.parametrize("batch_size", [0, 501])
def test_settings_reject_out_of_range_batch_size(batch_size: int) -> None:
    """Reject value batch sizes outside the bounded-transaction range."""

    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, import_value_batch_size=batch_size)


def test_settings_reject_idle_ttl_shorter_than_grace() -> None:
    """Require unfinished sessions to outlive completed ones."""

    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, import_session_grace_seconds=600, import_session_idle_ttl_seconds=60)


def test_settings_reject_blank_organization() -> None:
    """Reject a whitespace-only tenant identifier."""

    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, organization_id="   ")


def test_config_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Map uppercase environment variables onto settings fields."""

    monkeypatch.setenv("ORGANIZATION_ID", "org-env")
    monkeypatch.setenv("IMPORT_MAX_VALID_DATE", "2025-12-31")
    monkeypatch.setenv("MAX_MANDATES_PER_ORGANIZATION", "3")

    settings = config_load_settings()

    assert settings.organization_id == "org-env"
    assert settings.import_max_valid_date.isoformat() == "2025-12-31"
    assert settings.max_mandates_per_organization == 3


def test_config_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Raise SettingsLoadError with actionable context for invalid environment values.

    Returns:
        None: Assertions validate error wrapping.

    Raises:
        AssertionError: Raised when the validation error is not wrapped.
    """

    monkeypatch.setenv("IMPORT_VALUE_BATCH_SIZE", "not-a-number")

    with pytest.raises(SettingsLoadError, match="Startup configuration validation failed"):
        config_load_settings()
