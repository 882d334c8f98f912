"""Database service for mandate lookup, UPSERT and rollup persistence."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from mandate_import.domain import MandateGroup

from .interfaces import (
    MandateRecord,
    MandateRepositoryPort,
    MandateStatsRefreshResult,
    MandateStatsRepositoryPort,
    MandateUpsertRequest,
    MandateUpsertResult,
)


class SQLAlchemyMandatePersistenceService(MandateRepositoryPort, MandateStatsRepositoryPort):
    """SQLAlchemy implementation of mandate reads, UPSERT and stats refresh."""

    def __init__(self, engine: Engine):
        """Initialize mandate persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")

        self._engine = engine

    def db_mandate_find_by_name(self, organization_id: str, name: str) -> MandateRecord | None:
        """Return the mandate with this name in the organization, if any.

        Args:
            organization_id: Owning organization identifier.
            name: Mandate name.

        Returns:
            MandateRecord | None: Matching mandate or None.

        Raises:
            ValueError: Raised when input values are blank.
            RuntimeError: Raised when read operation fails.
        """

        normalized_organization_id = self._db_mandate_validate_non_empty_text(organization_id, "organization_id")
        normalized_name = self._db_mandate_validate_non_empty_text(name, "name")

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT mandate_id, organization_id, name, mandate_group, active, total_revenue, last_entry "
                        "FROM mandate "
                        "WHERE organization_id = :organization_id AND name = :name"
                    ),
                    {"organization_id": normalized_organization_id, "name": normalized_name},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("mandate lookup failed") from error

        if row is None:
            return None
        return self._db_mandate_build_record(row)

    def db_mandate_count(self, organization_id: str) -> int:
        """Return the number of mandates stored for the organization.

        Args:
            organization_id: Owning organization identifier.

        Returns:
            int: Mandate count.

        Raises:
            ValueError: Raised when organization id is blank.
            RuntimeError: Raised when read operation fails.
        """

        normalized_organization_id = self._db_mandate_validate_non_empty_text(organization_id, "organization_id")

        try:
            with self._engine.connect() as connection:
                count = connection.execute(
                    text("SELECT count(*) FROM mandate WHERE organization_id = :organization_id"),
                    {"organization_id": normalized_organization_id},
                ).scalar_one()
        except SQLAlchemyError as error:
            raise RuntimeError("mandate count failed") from error
        return int(count)

    def db_mandate_upsert(self, request: MandateUpsertRequest) -> MandateUpsertResult:
        """Insert or update one mandate by (organization_id, name).

        The insert-vs-update branch is reported by PostgreSQL itself through
        `xmax = 0`, which holds only for freshly inserted tuples.

        Args:
            request: Mandate upsert request.

        Returns:
            MandateUpsertResult: Internal id and create/update branch.

        Raises:
            ValueError: Raised when request values are invalid.
            RuntimeError: Raised when persistence operation fails.
        """

        normalized_organization_id = self._db_mandate_validate_non_empty_text(request.organization_id, "organization_id")
        normalized_name = self._db_mandate_validate_non_empty_text(request.name, "name")
        group = MandateGroup(request.group)

        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "INSERT INTO mandate (organization_id, name, mandate_group, active) "
                        "VALUES (:organization_id, :name, :mandate_group, true) "
                        "ON CONFLICT ON CONSTRAINT uq_mandate_organization_name DO UPDATE SET "
                        "mandate_group = EXCLUDED.mandate_group, "
                        "active = true, "
                        "updated_at_utc = now() "
                        "RETURNING mandate_id, (xmax = 0) AS was_inserted"
                    ),
                    {
                        "organization_id": normalized_organization_id,
                        "name": normalized_name,
                        "mandate_group": group.value,
                    },
                ).mappings().one()
        except SQLAlchemyError as error:
            raise RuntimeError(f"mandate upsert failed for name={normalized_name}") from error

        return MandateUpsertResult(mandate_id=row["mandate_id"], created=bool(row["was_inserted"]))

    def db_mandate_list_ids(self, organization_id: str) -> list[UUID]:
        """Return every mandate id of the organization ordered by name.

        Args:
            organization_id: Owning organization identifier.

        Returns:
            list[UUID]: Mandate identifiers.

        Raises:
            ValueError: Raised when organization id is blank.
            RuntimeError: Raised when read operation fails.
        """

        normalized_organization_id = self._db_mandate_validate_non_empty_text(organization_id, "organization_id")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT mandate_id FROM mandate "
                        "WHERE organization_id = :organization_id "
                        "ORDER BY name ASC, mandate_id ASC"
                    ),
                    {"organization_id": normalized_organization_id},
                ).scalars().all()
        except SQLAlchemyError as error:
            raise RuntimeError("mandate id listing failed") from error
        return list(rows)

    def db_mandate_stats_refresh(self, mandate_id: UUID) -> MandateStatsRefreshResult:
        """Recompute and store sum of values and most recent date for one mandate.

        Args:
            mandate_id: Mandate identifier.

        Returns:
            MandateStatsRefreshResult: Stored rollup before and after refresh.

        Raises:
            LookupError: Raised when the mandate does not exist.
            RuntimeError: Raised when persistence operation fails.
        """

        try:
            with self._engine.begin() as connection:
                previous_row = connection.execute(
                    text(
                        "SELECT total_revenue, last_entry FROM mandate "
                        "WHERE mandate_id = :mandate_id "
                        "FOR UPDATE"
                    ),
                    {"mandate_id": mandate_id},
                ).mappings().first()
                if previous_row is None:
                    raise LookupError(f"mandate not found: {mandate_id}")

                aggregate_row = connection.execute(
                    text(
                        "SELECT COALESCE(SUM(value), 0) AS total_revenue, MAX(value_date) AS last_entry "
                        "FROM day_value "
                        "WHERE mandate_id = :mandate_id"
                    ),
                    {"mandate_id": mandate_id},
                ).mappings().one()

                connection.execute(
                    text(
                        "UPDATE mandate SET "
                        "total_revenue = :total_revenue, "
                        "last_entry = :last_entry, "
                        "updated_at_utc = now() "
                        "WHERE mandate_id = :mandate_id"
                    ),
                    {
                        "total_revenue": aggregate_row["total_revenue"],
                        "last_entry": aggregate_row["last_entry"],
                        "mandate_id": mandate_id,
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError(f"mandate stats refresh failed for mandate_id={mandate_id}") from error

        return MandateStatsRefreshResult(
            mandate_id=mandate_id,
            previous_total_revenue=float(previous_row["total_revenue"]),
            previous_last_entry=previous_row["last_entry"],
            total_revenue=float(aggregate_row["total_revenue"]),
            last_entry=aggregate_row["last_entry"],
        )

    def _db_mandate_build_record(self, row: Any) -> MandateRecord:
        """Build typed mandate record from SQL row mapping."""

        return MandateRecord(
            mandate_id=row["mandate_id"],
            organization_id=row["organization_id"],
            name=row["name"],
            group=MandateGroup(row["mandate_group"]),
            active=bool(row["active"]),
            total_revenue=float(row["total_revenue"]),
            last_entry=row["last_entry"],
        )

    def _db_mandate_validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate and normalize required text input.

        Args:
            value: Input value.
            field_name: Field name for error context.

        Returns:
            str: Stripped value.

        Raises:
            ValueError: Raised when value is blank.
        """

        normalized_value = value.strip()
        if not normalized_value:
            raise ValueError(f"{field_name} must not be blank")
        return normalized_value
