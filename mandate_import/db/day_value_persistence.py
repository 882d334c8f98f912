"""Database service for day-value UPSERT persistence in bounded transactions."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import DayValueRepositoryPort, DayValueUpsertRequest, DayValueUpsertResult

_DAY_VALUE_UPSERT_SQL = text(
    "INSERT INTO day_value (mandate_id, value_date, value) "
    "VALUES (:mandate_id, :value_date, :value) "
    "ON CONFLICT ON CONSTRAINT uq_day_value_date_mandate DO UPDATE SET "
    "value = EXCLUDED.value, "
    "updated_at_utc = now() "
    "RETURNING day_value_id, (xmax = 0) AS was_inserted"
)


class SQLAlchemyDayValuePersistenceService(DayValueRepositoryPort):
    """SQLAlchemy implementation of day-value UPSERT keyed by (value_date, mandate_id)."""

    def __init__(self, engine: Engine, lock_wait_ms: int = 10_000, statement_timeout_ms: int = 30_000):
        """Initialize day-value persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.
            lock_wait_ms: `lock_timeout` applied inside batch transactions.
            statement_timeout_ms: `statement_timeout` applied inside batch transactions.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine or timeouts are invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        if lock_wait_ms < 1:
            raise ValueError("lock_wait_ms must be positive")
        if statement_timeout_ms < 1:
            raise ValueError("statement_timeout_ms must be positive")

        self._engine = engine
        self._lock_wait_ms = int(lock_wait_ms)
        self._statement_timeout_ms = int(statement_timeout_ms)

    def db_day_value_upsert_batch(self, requests: Sequence[DayValueUpsertRequest]) -> list[DayValueUpsertResult]:
        """Upsert all requests inside one transaction bounded by lock and statement timeouts.

        Args:
            requests: Day-value upsert requests.

        Returns:
            list[DayValueUpsertResult]: One result per request in input order.

        Raises:
            ValueError: Raised when request values are invalid.
            RuntimeError: Raised when the transaction fails; nothing is persisted.
        """

        for request in requests:
            self._db_day_value_validate_request(request)
        if not requests:
            return []

        try:
            with self._engine.begin() as connection:
                # SET LOCAL does not accept bind parameters; values are validated ints.
                connection.execute(text(f"SET LOCAL lock_timeout = {self._lock_wait_ms}"))
                connection.execute(text(f"SET LOCAL statement_timeout = {self._statement_timeout_ms}"))
                return [self._db_day_value_execute_upsert(connection, request) for request in requests]
        except SQLAlchemyError as error:
            raise RuntimeError(f"day value batch upsert failed for {len(requests)} rows") from error

    def db_day_value_upsert(self, request: DayValueUpsertRequest) -> DayValueUpsertResult:
        """Upsert one day value in its own transaction.

        Args:
            request: Day-value upsert request.

        Returns:
            DayValueUpsertResult: Internal id and create/update branch.

        Raises:
            ValueError: Raised when request values are invalid.
            RuntimeError: Raised when persistence operation fails.
        """

        self._db_day_value_validate_request(request)

        try:
            with self._engine.begin() as connection:
                return self._db_day_value_execute_upsert(connection, request)
        except SQLAlchemyError as error:
            raise RuntimeError(
                f"day value upsert failed for mandate_id={request.mandate_id} date={request.value_date.isoformat()}"
            ) from error

    def _db_day_value_execute_upsert(self, connection: Connection, request: DayValueUpsertRequest) -> DayValueUpsertResult:
        """Execute one UPSERT statement on an open connection."""

        row = connection.execute(
            _DAY_VALUE_UPSERT_SQL,
            {
                "mandate_id": request.mandate_id,
                "value_date": request.value_date,
                "value": request.value,
            },
        ).mappings().one()
        return DayValueUpsertResult(day_value_id=row["day_value_id"], created=bool(row["was_inserted"]))

    def _db_day_value_validate_request(self, request: DayValueUpsertRequest) -> None:
        """Validate one day-value request before SQL execution.

        Args:
            request: Day-value upsert request.

        Returns:
            None: Validation passes silently.

        Raises:
            ValueError: Raised when mandate id is missing or value is negative.
        """

        if request.mandate_id is None:
            raise ValueError("mandate_id must not be None")
        if request.value < 0:
            raise ValueError("value must not be negative")
