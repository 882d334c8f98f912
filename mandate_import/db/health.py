"""Database health service for connectivity checks against the import schema."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from mandate_import.domain import HealthStatus

from .interfaces import DatabaseHealthPort


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service verifying connectivity and presence of import tables."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL with password hidden."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify connectivity and that the mandate and day-value tables exist.

        Returns:
            HealthStatus: `ok` when both tables are reachable, `degraded` when the schema is missing.

        Raises:
            ConnectionError: Raised when connectivity check fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT to_regclass('public.mandate') IS NOT NULL AS has_mandate, "
                        "to_regclass('public.day_value') IS NOT NULL AS has_day_value"
                    )
                ).mappings().one()
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        if not (row["has_mandate"] and row["has_day_value"]):
            return HealthStatus(status="degraded", detail="import schema missing; run alembic upgrade head")
        return HealthStatus(status="ok", detail="database connectivity verified")
