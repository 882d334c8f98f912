"""Job-layer import orchestrator for single-shot and chunked workbook uploads."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID

from mandate_import.domain import domain_build_stage_event, domain_elapsed_ms

from .interfaces import (
    ChunkImportRequest,
    ChunkImportResult,
    ImportCounters,
    ImportExecutionResult,
    ImportOrchestratorPort,
    ImportWorkbook,
)
from .mandate_reconciler import MandateReconciler
from .session_tracker import ImportSession, ImportSessionTracker
from .stats_finalizer import StatsFinalizer
from .value_writer import BatchValueWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOrchestratorConfig:
    """Configuration values for import orchestration.

    Attributes:
        organization_id: Tenant owning every imported mandate.
        max_valid_date: Strict-parsing ceiling for single-shot uploads; None means today in UTC.
    """

    organization_id: str
    max_valid_date: date | None = None


class MandateImportOrchestrator(ImportOrchestratorPort):
    """Run reconcile, write and finalize stages for workbook uploads."""

    def __init__(
        self,
        reconciler: MandateReconciler,
        value_writer: BatchValueWriter,
        stats_finalizer: StatsFinalizer,
        session_tracker: ImportSessionTracker,
        config: ImportOrchestratorConfig,
    ):
        """Initialize import orchestrator dependencies.

        Args:
            reconciler: Mandate reconciliation stage.
            value_writer: Batched day-value stage.
            stats_finalizer: Mandate rollup stage.
            session_tracker: Chunked upload session tracker.
            config: Import execution configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if reconciler is None:
            raise ValueError("reconciler must not be None")
        if value_writer is None:
            raise ValueError("value_writer must not be None")
        if stats_finalizer is None:
            raise ValueError("stats_finalizer must not be None")
        if session_tracker is None:
            raise ValueError("session_tracker must not be None")
        if not config.organization_id.strip():
            raise ValueError("config.organization_id must not be blank")

        self._reconciler = reconciler
        self._value_writer = value_writer
        self._stats_finalizer = stats_finalizer
        self._session_tracker = session_tracker
        self._config = config

    def import_execute_workbook(self, workbook: ImportWorkbook) -> ImportExecutionResult:
        """Import one complete workbook with the strict date ceiling.

        Args:
            workbook: Decoded workbook rows.

        Returns:
            ImportExecutionResult: Final counters, errors and stage timeline.

        Raises:
            RuntimeError: This method does not raise runtime errors; failures return `success=False`.
        """

        started_at_utc = datetime.now(timezone.utc)
        timeline: list[dict[str, object]] = [
            domain_build_stage_event(
                stage="import",
                status="started",
                details={"mandate_rows": len(workbook.mandates), "value_rows": len(workbook.day_values)},
            )
        ]
        counters = ImportCounters()
        max_valid_date = self._config.max_valid_date or started_at_utc.date()

        try:
            mandate_mapping: dict[str, UUID] = {}
            self._import_run_rows(
                mandates=workbook.mandates,
                day_values=workbook.day_values,
                mandate_mapping=mandate_mapping,
                max_valid_date=max_valid_date,
                counters=counters,
                timeline=timeline,
            )
            self._import_finalize_stats(mandate_mapping.values(), counters, timeline)
        except (ValueError, RuntimeError) as error:
            logger.exception("single-shot import failed")
            counters.errors.append(f"import failed: {error}")
            timeline.append(
                domain_build_stage_event(
                    stage="import",
                    status="failed",
                    details={
                        "error_type": type(error).__name__,
                        "error_message": str(error),
                        "traceback": traceback.format_exc(),
                    },
                )
            )
            return ImportExecutionResult(
                success=False,
                message="import failed while processing rows",
                counters=counters,
                diagnostics=timeline,
            )

        timeline.append(
            domain_build_stage_event(
                stage="import",
                status="completed",
                details={"duration_ms": domain_elapsed_ms(started_at_utc), "error_count": len(counters.errors)},
            )
        )
        logger.info(
            "single-shot import completed processed_rows=%d errors=%d",
            counters.processed_rows,
            len(counters.errors),
        )
        return ImportExecutionResult(
            success=True,
            message="import completed",
            counters=counters,
            diagnostics=timeline,
        )

    def import_execute_chunk(self, request: ChunkImportRequest, user_id: str) -> ChunkImportResult:
        """Import one chunk under the session lock and finalize on the last chunk.

        Args:
            request: Chunk payload.
            user_id: Caller identity owning the session.

        Returns:
            ChunkImportResult: Progress, cumulative counters and this chunk's errors.

        Raises:
            ImportSessionNotFoundError: Raised when a non-first chunk references an unknown session.
            ImportSessionClosedError: Raised when the session already completed or failed; nothing is written.
            ValueError: Raised when chunk coordinates are invalid.
            RuntimeError: Raised when chunk processing fails unexpectedly; the session is marked `error`.
        """

        if request.total_chunks < 1:
            raise ValueError("total_chunks must be positive")
        if not 0 <= request.chunk_index < request.total_chunks:
            raise ValueError(f"chunk_index out of range: {request.chunk_index}/{request.total_chunks}")

        with self._session_tracker.session_lock(request.session_id):
            session = self._session_tracker.session_begin_chunk(
                session_id=request.session_id,
                user_id=user_id,
                is_first_chunk=request.is_first_chunk,
                total_chunks=request.total_chunks,
            )
            chunk_counters = ImportCounters()
            timeline: list[dict[str, object]] = []
            try:
                self._import_run_rows(
                    mandates=request.mandates,
                    day_values=request.day_values,
                    mandate_mapping=session.mandate_mapping,
                    max_valid_date=None,
                    counters=chunk_counters,
                    timeline=timeline,
                )
                if request.is_last_chunk:
                    self._import_finalize_stats(session.mandate_mapping.values(), chunk_counters, timeline)
            except (ValueError, RuntimeError) as error:
                self._session_tracker.session_record_chunk(session, chunk_counters, request.chunk_index)
                self._session_tracker.session_fail(session, f"chunk {request.chunk_index} failed: {error}")
                raise RuntimeError(f"chunk {request.chunk_index} of session {request.session_id} failed") from error

            self._session_tracker.session_record_chunk(session, chunk_counters, request.chunk_index)
            if request.is_last_chunk:
                self._session_tracker.session_complete(session)

            logger.info(
                "chunk imported session_id=%s chunk=%d/%d processed_rows=%d errors=%d",
                request.session_id,
                request.chunk_index + 1,
                request.total_chunks,
                chunk_counters.processed_rows,
                len(chunk_counters.errors),
            )
            return ChunkImportResult(
                chunk_index=request.chunk_index,
                total_chunks=request.total_chunks,
                percentage=job_import_chunk_percentage(request.chunk_index, request.total_chunks),
                cumulative=_import_copy_counters(session.counters),
                chunk_errors=list(chunk_counters.errors),
                is_complete=request.is_last_chunk,
            )

    def import_get_session(self, session_id: str, user_id: str) -> ImportSession | None:
        """Return the caller's live session, or None when absent, expired or owned by another user."""

        session = self._session_tracker.session_get(session_id)
        if session is None or session.user_id != user_id:
            return None
        return session

    def _import_run_rows(
        self,
        mandates,
        day_values,
        mandate_mapping: dict[str, UUID],
        max_valid_date: date | None,
        counters: ImportCounters,
        timeline: list[dict[str, object]],
    ) -> None:
        """Run the mandate and value stages, adding their counters into `counters`."""

        timeline.append(domain_build_stage_event(stage="mandates", status="started"))
        reconcile_outcome = self._reconciler.reconciler_reconcile(
            rows=mandates,
            organization_id=self._config.organization_id,
            mandate_mapping=mandate_mapping,
        )
        counters.mandates_created += reconcile_outcome.mandates_created
        counters.mandates_updated += reconcile_outcome.mandates_updated
        counters.processed_rows += reconcile_outcome.processed
        counters.errors.extend(reconcile_outcome.errors)
        timeline.append(
            domain_build_stage_event(
                stage="mandates",
                status="completed",
                details={
                    "created": reconcile_outcome.mandates_created,
                    "updated": reconcile_outcome.mandates_updated,
                    "error_count": len(reconcile_outcome.errors),
                },
            )
        )

        timeline.append(domain_build_stage_event(stage="values", status="started"))
        write_outcome = self._value_writer.writer_write_values(
            rows=day_values,
            mandate_mapping=mandate_mapping,
            max_valid_date=max_valid_date,
        )
        counters.values_created += write_outcome.values_created
        counters.values_updated += write_outcome.values_updated
        counters.processed_rows += write_outcome.processed
        counters.errors.extend(write_outcome.errors)
        timeline.append(
            domain_build_stage_event(
                stage="values",
                status="completed",
                details={
                    "created": write_outcome.values_created,
                    "updated": write_outcome.values_updated,
                    "batch_count": write_outcome.batch_count,
                    "fallback_batch_count": write_outcome.fallback_batch_count,
                    "error_count": len(write_outcome.errors),
                },
            )
        )

    def _import_finalize_stats(self, mandate_ids, counters: ImportCounters, timeline: list[dict[str, object]]) -> None:
        """Refresh rollups for the touched mandates and collect stats errors."""

        timeline.append(domain_build_stage_event(stage="stats", status="started"))
        finalize_outcome = self._stats_finalizer.stats_finalize(mandate_ids)
        counters.errors.extend(finalize_outcome.errors)
        timeline.append(
            domain_build_stage_event(
                stage="stats",
                status="completed",
                details={
                    "refreshed": finalize_outcome.refreshed,
                    "changed": finalize_outcome.changed,
                    "error_count": len(finalize_outcome.errors),
                },
            )
        )


def job_import_chunk_percentage(chunk_index: int, total_chunks: int) -> int:
    """Return upload progress for a zero-based chunk index, rounded half up.

    Args:
        chunk_index: Zero-based chunk index.
        total_chunks: Declared number of chunks.

    Returns:
        int: Percentage in 0-100.

    Raises:
        ValueError: Raised when total_chunks is not positive.
    """

    if total_chunks < 1:
        raise ValueError("total_chunks must be positive")
    return (200 * (chunk_index + 1) + total_chunks) // (2 * total_chunks)


def _import_copy_counters(counters: ImportCounters) -> ImportCounters:
    """Return a detached copy so later chunks do not mutate returned results."""

    copied = ImportCounters()
    copied.counters_add(counters)
    return copied
