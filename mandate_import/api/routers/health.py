"""Health endpoint router composition for app, database and import session checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from mandate_import.db import DatabaseHealthPort
from mandate_import.jobs import ImportSessionTracker


def api_create_health_router(
    db_health_service: DatabaseHealthPort,
    session_tracker: ImportSessionTracker | None = None,
) -> APIRouter:
    """Create health-check router with app, database and session status.

    Args:
        db_health_service: DB-layer health service interface.
        session_tracker: Optional chunked upload session tracker reporting live sessions.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application, database and import session health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.

        Raises:
            ConnectionError: Raised when database health check fails.
        """

        active_sessions = session_tracker.session_active_count() if session_tracker is not None else 0
        try:
            db_health = db_health_service.db_check_health()
            payload = {
                "status": "ok" if db_health.status == "ok" else "degraded",
                "app": "up",
                "database": db_health.status,
                "detail": db_health.detail,
                "target": db_health_service.db_connection_label(),
                "active_import_sessions": active_sessions,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        except ConnectionError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "database": "down",
                "detail": str(error),
                "target": db_health_service.db_connection_label(),
                "active_import_sessions": active_sessions,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return router
