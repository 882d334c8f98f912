"""Regression tests for locale-ambiguous date and numeric cell parsing."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from mandate_import.domain import (
    DateFormatError,
    FutureDateError,
    NumericValueError,
    domain_parse_import_date,
    domain_parse_import_number,
)


def test_domain_parse_import_date_disambiguates_slash_dates() -> None:
    """Resolve `D/M/Y` components by magnitude, then by the day-first default.

    Returns:
        None: Assertions validate slash-date disambiguation.

    Raises:
        AssertionError: Raised when components resolve to the wrong calendar date.
    """

    assert domain_parse_import_date("05/03/24") == date(2024, 3, 5)
    assert domain_parse_import_date("25/03/24") == date(2024, 3, 25)
    assert domain_parse_import_date("03/25/24") == date(2024, 3, 25)
    assert domain_parse_import_date("01/02/2024") == date(2024, 2, 1)
    assert domain_parse_import_date(" 1/2/24 ") == date(2024, 2, 1)


def test_domain_parse_import_date_ignores_time_suffix_on_slash_dates() -> None:
    """Accept text cells exported with a trailing midnight or clock time."""

    assert domain_parse_import_date("05/03/2024 00:00:00") == date(2024, 3, 5)
    assert domain_parse_import_date("25/03/24 14:30") == date(2024, 3, 25)
    assert domain_parse_import_date("05/03/2024T08:15:00", day_first=False) == date(2024, 5, 3)


def test_domain_parse_import_date_honors_month_first_convention() -> None:
    """Apply month-first only when both components are <= 12.

    Returns:
        None: Assertions validate the configurable convention.

    Raises:
        AssertionError: Raised when the convention is ignored or over-applied.
    """

    assert domain_parse_import_date("05/03/24", day_first=False) == date(2024, 5, 3)
    assert domain_parse_import_date("25/03/24", day_first=False) == date(2024, 3, 25)


def test_domain_parse_import_date_rejects_out_of_range_components() -> None:
    """Reject resolved components outside calendar ranges as structural errors.

    Returns:
        None: Assertions validate structural date errors.

    Raises:
        AssertionError: Raised when impossible dates are accepted.
    """

    with pytest.raises(DateFormatError):
        domain_parse_import_date("13/13/24")
    with pytest.raises(DateFormatError):
        domain_parse_import_date("31/02/2024")
    with pytest.raises(DateFormatError):
        domain_parse_import_date("2024-13-01")


def test_domain_parse_import_date_accepts_iso_typed_and_fallback_formats() -> None:
    """Parse ISO text, typed dates and the fixed fallback formats.

    Returns:
        None: Assertions validate non-slash inputs.

    Raises:
        AssertionError: Raised when supported inputs are rejected.
    """

    assert domain_parse_import_date("2024-03-05") == date(2024, 3, 5)
    assert domain_parse_import_date("2024-03-05T10:30:00") == date(2024, 3, 5)
    assert domain_parse_import_date("2024/03/05") == date(2024, 3, 5)
    assert domain_parse_import_date("05.03.2024") == date(2024, 3, 5)
    assert domain_parse_import_date("20240305") == date(2024, 3, 5)
    assert domain_parse_import_date("05-03-2024") == date(2024, 3, 5)
    assert domain_parse_import_date(date(2024, 3, 5)) == date(2024, 3, 5)
    assert domain_parse_import_date(datetime(2024, 3, 5, 23, 0)) == date(2024, 3, 5)
    assert domain_parse_import_date(datetime(2024, 3, 5, 23, 30, tzinfo=timezone(timedelta(hours=-2)))) == date(
        2024, 3, 6
    )


def test_domain_parse_import_date_reports_unrecognized_text() -> None:
    """Carry the offending text on unrecognized date errors."""

    with pytest.raises(DateFormatError) as error_info:
        domain_parse_import_date("next tuesday")
    assert "date format not recognized" in str(error_info.value)
    assert error_info.value.raw_value == "next tuesday"

    with pytest.raises(DateFormatError):
        domain_parse_import_date(None)
    with pytest.raises(DateFormatError):
        domain_parse_import_date("   ")


def test_domain_parse_import_date_strict_ceiling_rejects_future_dates() -> None:
    """Raise the dedicated future-date error only when a ceiling is given.

    Returns:
        None: Assertions validate strict parsing.

    Raises:
        AssertionError: Raised when the ceiling is not enforced.
    """

    ceiling = date(2024, 3, 31)
    assert domain_parse_import_date("31/03/24", max_valid_date=ceiling) == ceiling
    with pytest.raises(FutureDateError) as error_info:
        domain_parse_import_date("01/04/24", max_valid_date=ceiling)
    assert "check the date format" in str(error_info.value)
    assert isinstance(error_info.value, DateFormatError)
    assert domain_parse_import_date("01/04/24") == date(2024, 4, 1)


@pytest.mark.parametrize(
    ("raw_value", "expected"),
    [
        ("2.500,75", 2500.75),
        ("1,250.75", 1250.75),
        ("850,25", 850.25),
        ("1,250", 1250.0),
        ("1'200.50", 1200.5),
        ("1 234,5", 1234.5),
        ("12345,67", 1234567.0),
        ("CHF 99.90", 99.9),
        ("0", 0.0),
    ],
)
def test_domain_parse_import_number_normalizes_separators(raw_value: str, expected: float) -> None:
    """Normalize locale-specific separators into floats.

    Returns:
        None: Assertions validate separator rules.

    Raises:
        AssertionError: Raised when separators are misread.
    """

    assert domain_parse_import_number(raw_value) == pytest.approx(expected)


def test_domain_parse_import_number_accepts_typed_numbers() -> None:
    """Pass typed numbers through without text normalization."""

    assert domain_parse_import_number(12) == 12.0
    assert domain_parse_import_number(12.5) == 12.5
    assert domain_parse_import_number(Decimal("3.25")) == 3.25


@pytest.mark.parametrize("raw_value", ["-5", -5, "abc", "", None, True, float("nan"), float("inf"), "1.2.3"])
def test_domain_parse_import_number_rejects_invalid_values(raw_value: object) -> None:
    """Reject negative, non-finite, boolean and unparsable values.

    Returns:
        None: Assertions validate numeric errors.

    Raises:
        AssertionError: Raised when invalid values are accepted.
    """

    with pytest.raises(NumericValueError) as error_info:
        domain_parse_import_number(raw_value)
    assert "invalid numeric value" in str(error_info.value)
