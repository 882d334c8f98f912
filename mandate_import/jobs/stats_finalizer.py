"""Mandate rollup recomputation after ingestion and for maintenance repairs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable
from uuid import UUID

from mandate_import.db import MandateRepositoryPort, MandateStatsRepositoryPort

logger = logging.getLogger(__name__)


@dataclass
class StatsFinalizeOutcome:
    """Counters and errors produced by one stats pass.

    Attributes:
        refreshed: Mandates whose rollup was recomputed.
        changed: Refreshed mandates whose stored rollup was stale.
        errors: Human-readable per-mandate errors.
    """

    refreshed: int = 0
    changed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def unchanged(self) -> int:
        """Return refreshed mandates whose stored rollup was already correct."""

        return self.refreshed - self.changed


class StatsFinalizer:
    """Recompute `total_revenue` and `last_entry` sequentially in small sub-batches."""

    def __init__(
        self,
        stats_repository: MandateStatsRepositoryPort,
        batch_size: int = 10,
        pause_seconds: float = 0.05,
        sleep_fn: Callable[[float], None] = time.sleep,
    ):
        """Initialize stats finalizer.

        Args:
            stats_repository: DB-layer stats repository.
            batch_size: Mandates per sub-batch.
            pause_seconds: Pause between sub-batches.
            sleep_fn: Pause implementation, replaceable in tests.

        Raises:
            ValueError: Raised when dependencies or sizes are invalid.
        """

        if stats_repository is None:
            raise ValueError("stats_repository must not be None")
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        if pause_seconds < 0:
            raise ValueError("pause_seconds must not be negative")

        self._stats_repository = stats_repository
        self._batch_size = batch_size
        self._pause_seconds = pause_seconds
        self._sleep_fn = sleep_fn

    def stats_finalize(self, mandate_ids: Iterable[UUID]) -> StatsFinalizeOutcome:
        """Recompute rollups for each distinct mandate id in first-seen order.

        Args:
            mandate_ids: Touched mandate identifiers; duplicates are refreshed once.

        Returns:
            StatsFinalizeOutcome: Refresh counters and per-mandate errors.

        Raises:
            RuntimeError: This method does not raise runtime errors; mandate failures are collected.
        """

        unique_mandate_ids = list(dict.fromkeys(mandate_ids))
        outcome = StatsFinalizeOutcome()
        for batch_start in range(0, len(unique_mandate_ids), self._batch_size):
            if batch_start > 0 and self._pause_seconds > 0:
                self._sleep_fn(self._pause_seconds)
            for mandate_id in unique_mandate_ids[batch_start : batch_start + self._batch_size]:
                try:
                    refresh_result = self._stats_repository.db_mandate_stats_refresh(mandate_id)
                except (LookupError, ValueError, RuntimeError) as error:
                    logger.error("stats refresh failed mandate_id=%s: %s", mandate_id, error)
                    outcome.errors.append(f"stats error for mandate {mandate_id}: {error}")
                    continue
                outcome.refreshed += 1
                if refresh_result.stats_changed():
                    outcome.changed += 1

        logger.info(
            "finalized mandate stats mandates=%d refreshed=%d changed=%d errors=%d",
            len(unique_mandate_ids),
            outcome.refreshed,
            outcome.changed,
            len(outcome.errors),
        )
        return outcome


def job_stats_repair_organization(
    mandate_repository: MandateRepositoryPort,
    finalizer: StatsFinalizer,
    organization_id: str,
) -> StatsFinalizeOutcome:
    """Recompute rollups for every mandate of one organization.

    Args:
        mandate_repository: DB-layer mandate repository used to list mandates.
        finalizer: Stats finalizer performing the recomputation.
        organization_id: Organization whose mandates are repaired.

    Returns:
        StatsFinalizeOutcome: `changed` counts corrected mandates, `unchanged` already correct ones.

    Raises:
        RuntimeError: Raised when listing mandates fails.
    """

    mandate_ids = mandate_repository.db_mandate_list_ids(organization_id)
    logger.info("repairing mandate stats organization_id=%s mandates=%d", organization_id, len(mandate_ids))
    return finalizer.stats_finalize(mandate_ids)
