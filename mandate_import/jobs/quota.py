"""Per-organization mandate capacity policy consulted before mandate creation."""

from __future__ import annotations

from dataclasses import dataclass

from mandate_import.db import MandateRepositoryPort


@dataclass(frozen=True)
class MandateQuotaDecision:
    """Result of one mandate capacity check.

    Attributes:
        allowed: Whether one more mandate may be created.
        current: Mandates counted against the quota.
        limit: Configured quota, or None when unlimited.
    """

    allowed: bool
    current: int
    limit: int | None

    @property
    def unlimited(self) -> bool:
        """Return whether no quota is configured."""

        return self.limit is None


class MandateQuotaPolicy:
    """Quota policy backed by the mandate repository count."""

    def __init__(self, mandate_repository: MandateRepositoryPort, max_mandates: int | None):
        """Initialize quota policy.

        Args:
            mandate_repository: Repository used to count existing mandates.
            max_mandates: Maximum mandates per organization, or None for unlimited.

        Raises:
            ValueError: Raised when dependencies are missing or the limit is negative.
        """

        if mandate_repository is None:
            raise ValueError("mandate_repository must not be None")
        if max_mandates is not None and max_mandates < 0:
            raise ValueError("max_mandates must not be negative")
        self._mandate_repository = mandate_repository
        self._max_mandates = max_mandates

    def quota_check_create(self, organization_id: str) -> MandateQuotaDecision:
        """Check whether one more mandate may be created for the organization.

        Args:
            organization_id: Owning organization identifier.

        Returns:
            MandateQuotaDecision: Capacity decision.

        Raises:
            RuntimeError: Raised when the count cannot be read.
        """

        if self._max_mandates is None:
            return MandateQuotaDecision(allowed=True, current=0, limit=None)

        current = self._mandate_repository.db_mandate_count(organization_id)
        return MandateQuotaDecision(allowed=current < self._max_mandates, current=current, limit=self._max_mandates)
