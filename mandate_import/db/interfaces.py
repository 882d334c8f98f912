"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from dataclasses import dataclass
from datetime import date
from typing import Protocol, Sequence
from uuid import UUID

from mandate_import.domain import HealthStatus, MandateGroup


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class MandateRecord:
    """Persisted mandate row.

    Attributes:
        mandate_id: Internal mandate identifier.
        organization_id: Owning organization identifier.
        name: Mandate name, unique within the organization.
        group: Mandate group.
        active: Whether the mandate is active.
        total_revenue: Rolled-up sum of day values.
        last_entry: Most recent day-value date, when any value exists.
    """

    mandate_id: UUID
    organization_id: str
    name: str
    group: MandateGroup
    active: bool
    total_revenue: float
    last_entry: date | None


@dataclass(frozen=True)
class MandateUpsertRequest:
    """Insert-or-update request keyed by (organization_id, name).

    Attributes:
        organization_id: Owning organization identifier.
        name: Mandate name.
        group: Mandate group to store.
    """

    organization_id: str
    name: str
    group: MandateGroup


@dataclass(frozen=True)
class MandateUpsertResult:
    """Outcome of one mandate upsert.

    Attributes:
        mandate_id: Internal mandate identifier.
        created: True when the insert branch was taken.
    """

    mandate_id: UUID
    created: bool


@dataclass(frozen=True)
class DayValueUpsertRequest:
    """Insert-or-update request keyed by (value_date, mandate_id).

    Attributes:
        mandate_id: Owning mandate identifier.
        value_date: Day of the observation.
        value: Non-negative numeric value.
    """

    mandate_id: UUID
    value_date: date
    value: float


@dataclass(frozen=True)
class DayValueUpsertResult:
    """Outcome of one day-value upsert.

    Attributes:
        day_value_id: Internal day-value identifier.
        created: True when the insert branch was taken.
    """

    day_value_id: UUID
    created: bool


@dataclass(frozen=True)
class MandateStatsRefreshResult:
    """Rollup values before and after one stats recomputation.

    Attributes:
        mandate_id: Refreshed mandate identifier.
        previous_total_revenue: Stored sum before refresh.
        previous_last_entry: Stored last date before refresh.
        total_revenue: Recomputed sum of values.
        last_entry: Recomputed most recent value date.
    """

    mandate_id: UUID
    previous_total_revenue: float
    previous_last_entry: date | None
    total_revenue: float
    last_entry: date | None

    def stats_changed(self, tolerance: float = 0.01) -> bool:
        """Return whether the stored rollup differed from the recomputed one."""

        return (
            abs(self.previous_total_revenue - self.total_revenue) > tolerance
            or self.previous_last_entry != self.last_entry
        )


class MandateRepositoryPort(Protocol):
    """Port definition for mandate lookup and upsert persistence."""

    def db_mandate_find_by_name(self, organization_id: str, name: str) -> MandateRecord | None:
        """Return the mandate with this name in the organization, if any.

        Args:
            organization_id: Owning organization identifier.
            name: Mandate name.

        Returns:
            MandateRecord | None: Matching mandate or None.

        Raises:
            RuntimeError: Raised when read operation fails.
        """

    def db_mandate_count(self, organization_id: str) -> int:
        """Return the number of mandates stored for the organization.

        Args:
            organization_id: Owning organization identifier.

        Returns:
            int: Mandate count.

        Raises:
            RuntimeError: Raised when read operation fails.
        """

    def db_mandate_upsert(self, request: MandateUpsertRequest) -> MandateUpsertResult:
        """Insert or update one mandate by (organization_id, name) in its own transaction.

        Args:
            request: Mandate upsert request.

        Returns:
            MandateUpsertResult: Internal id and create/update branch.

        Raises:
            ValueError: Raised when request values are invalid.
            RuntimeError: Raised when persistence operation fails.
        """

    def db_mandate_list_ids(self, organization_id: str) -> list[UUID]:
        """Return every mandate id of the organization ordered by name.

        Args:
            organization_id: Owning organization identifier.

        Returns:
            list[UUID]: Mandate identifiers.

        Raises:
            RuntimeError: Raised when read operation fails.
        """


class DayValueRepositoryPort(Protocol):
    """Port definition for day-value upsert persistence."""

    def db_day_value_upsert_batch(self, requests: Sequence[DayValueUpsertRequest]) -> list[DayValueUpsertResult]:
        """Upsert all requests inside one bounded transaction.

        Args:
            requests: Day-value upsert requests.

        Returns:
            list[DayValueUpsertResult]: One result per request in input order.

        Raises:
            ValueError: Raised when request values are invalid.
            RuntimeError: Raised when the transaction fails; nothing is persisted.
        """

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


class MandateStatsRepositoryPort(Protocol):
    """Port definition for mandate rollup recomputation."""

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
