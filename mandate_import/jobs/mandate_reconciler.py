"""Sequential mandate reconciliation with per-row error isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import MutableMapping, Sequence
from uuid import UUID

from mandate_import.db import MandateRepositoryPort, MandateUpsertRequest
from mandate_import.domain import CategoryClassificationError, RawMandateRow, domain_classify_category

from .quota import MandateQuotaPolicy

logger = logging.getLogger(__name__)


@dataclass
class MandateReconcileOutcome:
    """Counters and per-row errors produced by one reconciliation pass.

    Attributes:
        mandates_created: Rows that inserted a new mandate.
        mandates_updated: Rows that updated an existing mandate.
        processed: Rows reconciled successfully.
        errors: Human-readable per-row errors.
    """

    mandates_created: int = 0
    mandates_updated: int = 0
    processed: int = 0
    errors: list[str] = field(default_factory=list)


class MandateReconciler:
    """Upsert mandates by (organization, name) one row at a time.

    Each row runs in its own repository transaction so a failing row never
    rolls back its siblings.
    """

    def __init__(self, mandate_repository: MandateRepositoryPort, quota_policy: MandateQuotaPolicy | None = None):
        """Initialize mandate reconciler.

        Args:
            mandate_repository: DB-layer mandate repository.
            quota_policy: Optional capacity policy consulted before creating new mandates.

        Raises:
            ValueError: Raised when mandate repository is missing.
        """

        if mandate_repository is None:
            raise ValueError("mandate_repository must not be None")
        self._mandate_repository = mandate_repository
        self._quota_policy = quota_policy

    def reconciler_reconcile(
        self,
        rows: Sequence[RawMandateRow],
        organization_id: str,
        mandate_mapping: MutableMapping[str, UUID],
    ) -> MandateReconcileOutcome:
        """Reconcile mandate rows and extend the external-id mapping in place.

        Args:
            rows: Raw mandate rows in file order.
            organization_id: Owning organization identifier.
            mandate_mapping: External id to internal mandate id mapping, mutated in place.

        Returns:
            MandateReconcileOutcome: Create/update counters and per-row errors.

        Raises:
            RuntimeError: This method does not raise runtime errors; row failures are collected.
        """

        outcome = MandateReconcileOutcome()
        for row in rows:
            external_id = _reconciler_clean_text(row.external_id)
            name = _reconciler_clean_text(row.name)
            category = _reconciler_clean_text(row.category)
            if external_id is None or name is None or category is None:
                outcome.errors.append(f"invalid mandate row: {row.raw_describe()}")
                continue

            try:
                group = domain_classify_category(category)
            except CategoryClassificationError:
                outcome.errors.append(f"unknown category for {name}: {category}")
                continue

            try:
                if self._quota_policy is not None:
                    existing = self._mandate_repository.db_mandate_find_by_name(organization_id, name)
                    if existing is None:
                        decision = self._quota_policy.quota_check_create(organization_id)
                        if not decision.allowed:
                            outcome.errors.append(
                                f"mandate quota reached for {name}: {decision.current}/{decision.limit} mandates"
                            )
                            continue

                upsert_result = self._mandate_repository.db_mandate_upsert(
                    MandateUpsertRequest(organization_id=organization_id, name=name, group=group)
                )
            except (ValueError, RuntimeError) as error:
                logger.warning("mandate upsert failed name=%s: %s", name, error)
                outcome.errors.append(f"mandate error for {name}: {error}")
                continue

            mandate_mapping[external_id] = upsert_result.mandate_id
            if upsert_result.created:
                outcome.mandates_created += 1
            else:
                outcome.mandates_updated += 1
            outcome.processed += 1

        logger.info(
            "reconciled mandates rows=%d created=%d updated=%d errors=%d",
            len(rows),
            outcome.mandates_created,
            outcome.mandates_updated,
            len(outcome.errors),
        )
        return outcome


def _reconciler_clean_text(value: object) -> str | None:
    """Return stripped text, or None for blank or missing cells."""

    if value is None:
        return None
    normalized_value = str(value).strip()
    return normalized_value or None
