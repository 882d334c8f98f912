"""Shared pytest fixtures for job-layer and API tests.

The in-memory database double implements every repository port used by the
import jobs so ingestion behavior can be asserted by row presence without a
PostgreSQL server.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date
from typing import Sequence
from uuid import UUID

import pytest

from mandate_import.db import (
    DayValueUpsertRequest,
    DayValueUpsertResult,
    MandateRecord,
    MandateStatsRefreshResult,
    MandateUpsertRequest,
    MandateUpsertResult,
)


class InMemoryImportDatabase:
    """Repository double implementing mandate, day-value and stats ports.

    Attributes:
        mandates: Stored mandates by id.
        day_values: Stored `(day_value_id, value)` by `(value_date, mandate_id)`.
        fail_batches: When True every batch upsert raises before writing anything.
        failing_values: Values whose single-row upsert always raises.
        batch_calls: Number of batch upsert calls.
        single_calls: Number of single-row upsert calls.
        stats_refresh_calls: Mandate ids passed to stats refresh, in call order.
    """

    def __init__(self) -> None:
        self.mandates: dict[UUID, MandateRecord] = {}
        self.day_values: dict[tuple[date, UUID], tuple[UUID, float]] = {}
        self.fail_batches = False
        self.failing_values: set[float] = set()
        self.batch_calls = 0
        self.single_calls = 0
        self.stats_refresh_calls: list[UUID] = []

    def db_mandate_find_by_name(self, organization_id: str, name: str) -> MandateRecord | None:
        for record in self.mandates.values():
            if record.organization_id == organization_id and record.name == name:
                return record
        return None

    def db_mandate_count(self, organization_id: str) -> int:
        return sum(1 for record in self.mandates.values() if record.organization_id == organization_id)

    def db_mandate_upsert(self, request: MandateUpsertRequest) -> MandateUpsertResult:
        existing = self.db_mandate_find_by_name(request.organization_id, request.name)
        if existing is not None:
            self.mandates[existing.mandate_id] = replace(existing, group=request.group, active=True)
            return MandateUpsertResult(mandate_id=existing.mandate_id, created=False)

        mandate_id = uuid.uuid4()
        self.mandates[mandate_id] = MandateRecord(
            mandate_id=mandate_id,
            organization_id=request.organization_id,
            name=request.name,
            group=request.group,
            active=True,
            total_revenue=0.0,
            last_entry=None,
        )
        return MandateUpsertResult(mandate_id=mandate_id, created=True)

    def db_mandate_list_ids(self, organization_id: str) -> list[UUID]:
        records = [record for record in self.mandates.values() if record.organization_id == organization_id]
        return [record.mandate_id for record in sorted(records, key=lambda record: record.name)]

    def db_day_value_upsert_batch(self, requests: Sequence[DayValueUpsertRequest]) -> list[DayValueUpsertResult]:
        self.batch_calls += 1
        if self.fail_batches:
            raise RuntimeError("day value batch upsert failed")
        if any(request.value in self.failing_values for request in requests):
            raise RuntimeError("day value batch upsert failed")
        return [self._write_day_value(request) for request in requests]

    def db_day_value_upsert(self, request: DayValueUpsertRequest) -> DayValueUpsertResult:
        self.single_calls += 1
        if request.value in self.failing_values:
            raise RuntimeError(f"day value upsert failed for value={request.value}")
        return self._write_day_value(request)

    def db_mandate_stats_refresh(self, mandate_id: UUID) -> MandateStatsRefreshResult:
        self.stats_refresh_calls.append(mandate_id)
        record = self.mandates.get(mandate_id)
        if record is None:
            raise LookupError(f"mandate not found: {mandate_id}")

        owned_values = [
            (value_date, value)
            for (value_date, owner_id), (_, value) in self.day_values.items()
            if owner_id == mandate_id
        ]
        total_revenue = sum(value for _, value in owned_values)
        last_entry = max((value_date for value_date, _ in owned_values), default=None)
        self.mandates[mandate_id] = replace(record, total_revenue=total_revenue, last_entry=last_entry)
        return MandateStatsRefreshResult(
            mandate_id=mandate_id,
            previous_total_revenue=record.total_revenue,
            previous_last_entry=record.last_entry,
            total_revenue=total_revenue,
            last_entry=last_entry,
        )

    def values_for(self, mandate_id: UUID) -> dict[date, float]:
        """Return stored values of one mandate keyed by date."""

        return {
            value_date: value
            for (value_date, owner_id), (_, value) in self.day_values.items()
            if owner_id == mandate_id
        }

    def _write_day_value(self, request: DayValueUpsertRequest) -> DayValueUpsertResult:
        key = (request.value_date, request.mandate_id)
        existing = self.day_values.get(key)
        if existing is not None:
            self.day_values[key] = (existing[0], request.value)
            return DayValueUpsertResult(day_value_id=existing[0], created=False)
        day_value_id = uuid.uuid4()
        self.day_values[key] = (day_value_id, request.value)
        return DayValueUpsertResult(day_value_id=day_value_id, created=True)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def memory_database() -> InMemoryImportDatabase:
    """Return an empty in-memory repository double."""

    return InMemoryImportDatabase()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a manually advanced clock."""

    return FakeClock()


@pytest.fixture
def recorded_sleeps() -> list[float]:
    """Return a list receiving every pause requested through a `sleep_fn`."""

    return []
