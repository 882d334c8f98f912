"""Typed contracts for job-layer import workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from mandate_import.domain import ImportWorkbook, RawMandateRow, RawValueRow


@dataclass
class ImportCounters:
    """Cumulative import counters shared by single-shot and chunked paths.

    Attributes:
        processed_rows: Mandate and day-value rows persisted successfully.
        mandates_created: Mandates inserted.
        mandates_updated: Mandates updated.
        values_created: Day values inserted.
        values_updated: Day values overwritten (reported as `valuesSkipped`).
        errors: Human-readable per-row errors.
    """

    processed_rows: int = 0
    mandates_created: int = 0
    mandates_updated: int = 0
    values_created: int = 0
    values_updated: int = 0
    errors: list[str] = field(default_factory=list)

    def counters_add(self, other: ImportCounters) -> None:
        """Add another counter set into this one, appending its errors."""

        self.processed_rows += other.processed_rows
        self.mandates_created += other.mandates_created
        self.mandates_updated += other.mandates_updated
        self.values_created += other.values_created
        self.values_updated += other.values_updated
        self.errors.extend(other.errors)


@dataclass(frozen=True)
class ImportExecutionResult:
    """Result of one single-shot import.

    Attributes:
        success: False only when an unexpected failure aborted the import.
        message: Human-readable summary.
        counters: Import counters and per-row errors.
        diagnostics: Stage timeline events.
    """

    success: bool
    message: str
    counters: ImportCounters
    diagnostics: list[dict[str, object]]


@dataclass(frozen=True)
class ChunkImportRequest:
    """One slice of a chunked upload.

    Attributes:
        session_id: Client-generated upload session identifier.
        chunk_index: Zero-based chunk index.
        total_chunks: Declared number of chunks.
        mandates: Mandate rows carried by this chunk.
        day_values: Day-value rows carried by this chunk.
        is_first_chunk: Whether this chunk may open the session.
        is_last_chunk: Whether this chunk completes the session.
    """

    session_id: str
    chunk_index: int
    total_chunks: int
    mandates: tuple[RawMandateRow, ...]
    day_values: tuple[RawValueRow, ...]
    is_first_chunk: bool
    is_last_chunk: bool


@dataclass(frozen=True)
class ChunkImportResult:
    """Result of one chunk call.

    Attributes:
        chunk_index: Zero-based chunk index echoed from the request.
        total_chunks: Declared number of chunks.
        percentage: Upload progress rounded half-up.
        cumulative: Session counters after this chunk (errors include all chunks).
        chunk_errors: Errors produced by this chunk only.
        is_complete: Whether this chunk completed the session.
    """

    chunk_index: int
    total_chunks: int
    percentage: int
    cumulative: ImportCounters
    chunk_errors: list[str]
    is_complete: bool


class ImportOrchestratorPort(Protocol):
    """Port definition for import orchestration used by the API layer."""

    def import_execute_workbook(self, workbook: ImportWorkbook) -> ImportExecutionResult:
        """Import one complete workbook in a single call.

        Args:
            workbook: Decoded workbook rows.

        Returns:
            ImportExecutionResult: Final counters, errors and diagnostics.

        Raises:
            RuntimeError: Raised only for failures outside the per-row error model.
        """

    def import_execute_chunk(self, request: ChunkImportRequest, user_id: str) -> ChunkImportResult:
        """Import one chunk of a multi-request upload session.

        Args:
            request: Chunk payload.
            user_id: Caller identity owning the session.

        Returns:
            ChunkImportResult: Progress, cumulative counters and chunk errors.

        Raises:
            ImportSessionNotFoundError: Raised when a non-first chunk references an unknown session.
            RuntimeError: Raised when chunk processing fails unexpectedly.
        """
