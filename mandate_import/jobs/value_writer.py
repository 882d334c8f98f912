"""Batched day-value writer with row-level fallback on batch transaction failure."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Mapping, Sequence
from uuid import UUID

from mandate_import.db import DayValueRepositoryPort, DayValueUpsertRequest, DayValueUpsertResult
from mandate_import.domain import (
    DateFormatError,
    NumericValueError,
    RawValueRow,
    domain_parse_import_date,
    domain_parse_import_number,
)

logger = logging.getLogger(__name__)

_WRITER_RECOVERABLE_ERRORS = (TimeoutError, ConnectionError, ValueError, RuntimeError)


@dataclass(frozen=True)
class ValueWriterConfig:
    """Configuration values for batched day-value writes.

    Attributes:
        batch_size: Rows per bounded transaction.
        pause_seconds: Pause between successive batches.
        day_first: Date convention when both `D/M` components are <= 12.
    """

    batch_size: int = 50
    pause_seconds: float = 0.1
    day_first: bool = True


@dataclass
class ValueWriteOutcome:
    """Counters and per-row errors produced by one write pass.

    Attributes:
        values_created: Rows that inserted a new day value.
        values_updated: Rows that overwrote an existing day value.
        processed: Rows persisted successfully.
        batch_count: Batches attempted.
        fallback_batch_count: Batches replayed row by row after a transaction failure.
        errors: Human-readable per-row errors.
    """

    values_created: int = 0
    values_updated: int = 0
    processed: int = 0
    batch_count: int = 0
    fallback_batch_count: int = 0
    errors: list[str] = field(default_factory=list)

    def outcome_record(self, result: DayValueUpsertResult) -> None:
        """Count one persisted row."""

        if result.created:
            self.values_created += 1
        else:
            self.values_updated += 1
        self.processed += 1


class BatchValueWriter:
    """Write day values in bounded batches, degrading to per-row writes on failure.

    Batches run strictly one after another; a batch's transaction or its
    fallback completes before the next batch starts.
    """

    def __init__(
        self,
        day_value_repository: DayValueRepositoryPort,
        config: ValueWriterConfig | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ):
        """Initialize batch value writer.

        Args:
            day_value_repository: DB-layer day-value repository.
            config: Batch size, pause and date convention.
            sleep_fn: Pause implementation, replaceable in tests.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        resolved_config = config or ValueWriterConfig()
        if day_value_repository is None:
            raise ValueError("day_value_repository must not be None")
        if resolved_config.batch_size < 1:
            raise ValueError("config.batch_size must be positive")
        if resolved_config.pause_seconds < 0:
            raise ValueError("config.pause_seconds must not be negative")

        self._day_value_repository = day_value_repository
        self._config = resolved_config
        self._sleep_fn = sleep_fn

    def writer_write_values(
        self,
        rows: Sequence[RawValueRow],
        mandate_mapping: Mapping[str, UUID],
        max_valid_date: date | None = None,
    ) -> ValueWriteOutcome:
        """Validate, parse and upsert day-value rows batch by batch.

        Args:
            rows: Raw day-value rows in file order.
            mandate_mapping: External id to internal mandate id mapping.
            max_valid_date: Optional strict-parsing ceiling for value dates.

        Returns:
            ValueWriteOutcome: Created/updated counters, batch counters and per-row errors.

        Raises:
            RuntimeError: This method does not raise runtime errors; row and batch failures are collected.
        """

        outcome = ValueWriteOutcome()
        batch_size = self._config.batch_size
        for batch_start in range(0, len(rows), batch_size):
            if batch_start > 0 and self._config.pause_seconds > 0:
                self._sleep_fn(self._config.pause_seconds)
            batch_rows = rows[batch_start : batch_start + batch_size]
            self._writer_write_batch(
                batch_rows=batch_rows,
                mandate_mapping=mandate_mapping,
                max_valid_date=max_valid_date,
                outcome=outcome,
            )

        logger.info(
            "wrote day values rows=%d created=%d updated=%d batches=%d fallback_batches=%d errors=%d",
            len(rows),
            outcome.values_created,
            outcome.values_updated,
            outcome.batch_count,
            outcome.fallback_batch_count,
            len(outcome.errors),
        )
        return outcome

    def _writer_write_batch(
        self,
        batch_rows: Sequence[RawValueRow],
        mandate_mapping: Mapping[str, UUID],
        max_valid_date: date | None,
        outcome: ValueWriteOutcome,
    ) -> None:
        """Write one batch in a shared transaction, replaying rows individually on failure."""

        outcome.batch_count += 1
        batch_errors: list[str] = []
        prepared_requests: list[DayValueUpsertRequest] = []
        for row in batch_rows:
            request = self._writer_prepare_row(
                row=row,
                mandate_mapping=mandate_mapping,
                max_valid_date=max_valid_date,
                errors=batch_errors,
            )
            if request is not None:
                prepared_requests.append(request)

        try:
            batch_results = self._day_value_repository.db_day_value_upsert_batch(prepared_requests)
        except _WRITER_RECOVERABLE_ERRORS as error:
            logger.warning(
                "day value batch %d failed, replaying %d rows individually: %s",
                outcome.batch_count,
                len(batch_rows),
                error,
            )
            outcome.fallback_batch_count += 1
            self._writer_replay_rows(
                batch_rows=batch_rows,
                mandate_mapping=mandate_mapping,
                max_valid_date=max_valid_date,
                outcome=outcome,
            )
            return

        outcome.errors.extend(batch_errors)
        for result in batch_results:
            outcome.outcome_record(result)

    def _writer_replay_rows(
        self,
        batch_rows: Sequence[RawValueRow],
        mandate_mapping: Mapping[str, UUID],
        max_valid_date: date | None,
        outcome: ValueWriteOutcome,
    ) -> None:
        """Replay validate, parse and upsert for each row of a failed batch in its own transaction."""

        for row in batch_rows:
            request = self._writer_prepare_row(
                row=row,
                mandate_mapping=mandate_mapping,
                max_valid_date=max_valid_date,
                errors=outcome.errors,
            )
            if request is None:
                continue
            try:
                result = self._day_value_repository.db_day_value_upsert(request)
            except _WRITER_RECOVERABLE_ERRORS as error:
                outcome.errors.append(f"value error for {row.raw_label()} {row.raw_date}: {error}")
                continue
            outcome.outcome_record(result)

    def _writer_prepare_row(
        self,
        row: RawValueRow,
        mandate_mapping: Mapping[str, UUID],
        max_valid_date: date | None,
        errors: list[str],
    ) -> DayValueUpsertRequest | None:
        """Validate and parse one row into an upsert request.

        Args:
            row: Raw day-value row.
            mandate_mapping: External id to internal mandate id mapping.
            max_valid_date: Optional strict-parsing ceiling.
            errors: Error list receiving this row's failure message.

        Returns:
            DayValueUpsertRequest | None: Prepared request, or None when the row was rejected.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        mandate_ref = None if row.mandate_ref is None else str(row.mandate_ref).strip()
        if _writer_is_blank(row.raw_date) or _writer_is_blank(row.raw_value) or not mandate_ref:
            errors.append(f"invalid value row: {row.raw_describe()}")
            return None

        mandate_id = mandate_mapping.get(mandate_ref)
        if mandate_id is None:
            errors.append(f"mandate not found for MandantId: {mandate_ref}")
            return None

        try:
            value_date = domain_parse_import_date(
                row.raw_date,
                day_first=self._config.day_first,
                max_valid_date=max_valid_date,
            )
        except DateFormatError as error:
            errors.append(f"invalid date for {row.raw_label()}: {error}")
            return None

        try:
            value = domain_parse_import_number(row.raw_value)
        except NumericValueError:
            errors.append(f"invalid value for {row.raw_label()}: {row.raw_value}")
            return None

        return DayValueUpsertRequest(mandate_id=mandate_id, value_date=value_date, value=value)


def _writer_is_blank(value: object) -> bool:
    """Return whether a cell is missing or whitespace-only text."""

    if value is None:
        return True
    return isinstance(value, str) and not value.strip()
