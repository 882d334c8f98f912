"""FastAPI application factory for the import service."""

from fastapi import FastAPI

from mandate_import.config import AppSettings
from mandate_import.db import DatabaseHealthPort, MandateRepositoryPort
from mandate_import.jobs import ImportSessionTracker, MandateImportOrchestrator

from .routers import api_create_health_router, api_create_import_router


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    import_orchestrator: MandateImportOrchestrator,
    session_tracker: ImportSessionTracker | None = None,
    mandate_repository: MandateRepositoryPort | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings.
        db_health_service: Database health service used by health endpoints.
        import_orchestrator: Job orchestrator for workbook and chunk imports.
        session_tracker: Optional session tracker reported by health endpoints.
        mandate_repository: Optional repository used by preview existence checks.

    Returns:
        FastAPI: Framework application instance with health and import routers.

    Raises:
        ValueError: Raised when required dependencies are missing.
    """
    application = FastAPI(title="Mandate Import")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal service identity response."""

        return {
            "service": "mandate-import",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(
        api_create_health_router(db_health_service=db_health_service, session_tracker=session_tracker)
    )
    application.include_router(
        api_create_import_router(
            settings=settings,
            import_orchestrator=import_orchestrator,
            mandate_repository=mandate_repository,
        )
    )

    return application
