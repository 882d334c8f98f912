"""Application bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI

from mandate_import.api import create_api_application
from mandate_import.config import AppSettings, config_load_settings
from mandate_import.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyDayValuePersistenceService,
    SQLAlchemyMandatePersistenceService,
    db_create_engine,
)
from mandate_import.jobs import (
    BatchValueWriter,
    ImportOrchestratorConfig,
    ImportSessionTracker,
    InMemoryImportSessionStore,
    MandateImportOrchestrator,
    MandateQuotaPolicy,
    MandateReconciler,
    StatsFinalizer,
    ValueWriterConfig,
)


@dataclass(frozen=True)
class ImportRuntime:
    """Wired import dependencies shared by the API and maintenance commands.

    Attributes:
        mandate_repository: Mandate persistence service.
        stats_finalizer: Mandate rollup stage.
        session_tracker: Chunked upload session tracker.
        orchestrator: Import orchestrator.
    """

    mandate_repository: SQLAlchemyMandatePersistenceService
    stats_finalizer: StatsFinalizer
    session_tracker: ImportSessionTracker
    orchestrator: MandateImportOrchestrator


def bootstrap_create_import_runtime(settings: AppSettings, engine) -> ImportRuntime:
    """Assemble repositories, job stages and the import orchestrator.

    Args:
        settings: Validated application settings.
        engine: SQLAlchemy engine shared by persistence services.

    Returns:
        ImportRuntime: Wired import dependencies.

    Raises:
        ValueError: Raised when settings produce invalid dependency values.
    """

    mandate_repository = SQLAlchemyMandatePersistenceService(engine=engine)
    day_value_repository = SQLAlchemyDayValuePersistenceService(
        engine=engine,
        lock_wait_ms=settings.import_batch_lock_wait_ms,
        statement_timeout_ms=settings.import_batch_statement_timeout_ms,
    )
    quota_policy = None
    if settings.max_mandates_per_organization is not None:
        quota_policy = MandateQuotaPolicy(
            mandate_repository=mandate_repository,
            max_mandates=settings.max_mandates_per_organization,
        )
    stats_finalizer = StatsFinalizer(
        stats_repository=mandate_repository,
        batch_size=settings.import_stats_batch_size,
        pause_seconds=settings.import_stats_pause_seconds,
    )
    session_tracker = ImportSessionTracker(
        store=InMemoryImportSessionStore(),
        grace_seconds=settings.import_session_grace_seconds,
        idle_ttl_seconds=settings.import_session_idle_ttl_seconds,
    )
    orchestrator = MandateImportOrchestrator(
        reconciler=MandateReconciler(mandate_repository=mandate_repository, quota_policy=quota_policy),
        value_writer=BatchValueWriter(
            day_value_repository=day_value_repository,
            config=ValueWriterConfig(
                batch_size=settings.import_value_batch_size,
                pause_seconds=settings.import_batch_pause_seconds,
                day_first=settings.import_day_first,
            ),
        ),
        stats_finalizer=stats_finalizer,
        session_tracker=session_tracker,
        config=ImportOrchestratorConfig(
            organization_id=settings.organization_id,
            max_valid_date=settings.import_max_valid_date,
        ),
    )
    return ImportRuntime(
        mandate_repository=mandate_repository,
        stats_finalizer=stats_finalizer,
        session_tracker=session_tracker,
        orchestrator=orchestrator,
    )


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    runtime = bootstrap_create_import_runtime(settings=resolved_settings, engine=engine)
    return create_api_application(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        import_orchestrator=runtime.orchestrator,
        session_tracker=runtime.session_tracker,
        mandate_repository=runtime.mandate_repository,
    )
