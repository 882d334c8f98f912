"""Import API router composition for single-shot, chunked, preview and template endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, File, Header, UploadFile, status
from fastapi.responses import JSONResponse, Response

from mandate_import.adapters import (
    MissingRequiredSheetError,
    WorkbookReadError,
    adapter_build_import_template,
    adapter_read_import_workbook,
)
from mandate_import.config import AppSettings
from mandate_import.db import MandateRepositoryPort
from mandate_import.jobs import (
    ChunkImportRequest,
    ImportCounters,
    ImportSessionClosedError,
    ImportSessionNotFoundError,
    MandateImportOrchestrator,
    job_import_build_preview,
)

from ..schemas import ChunkImportBody

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
_ACCEPTED_UPLOAD_CONTENT_TYPES = {XLSX_CONTENT_TYPE, "application/octet-stream", ""}
_ANONYMOUS_USER_ID = "anonymous"


def api_create_import_router(
    settings: AppSettings,
    import_orchestrator: MandateImportOrchestrator,
    mandate_repository: MandateRepositoryPort | None = None,
) -> APIRouter:
    """Create import router with upload, chunk, session, preview and template endpoints.

    Args:
        settings: Runtime settings for tenant, upload and preview limits.
        import_orchestrator: Job orchestrator for import execution.
        mandate_repository: Optional repository for preview existence checks.

    Returns:
        APIRouter: Router exposing `/import` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if import_orchestrator is None:
        raise ValueError("import_orchestrator must not be None")

    router = APIRouter(prefix="/import", tags=["import"])

    @router.post("")
    def api_import_workbook(file: UploadFile = File(...)) -> JSONResponse:
        """Import one complete workbook upload.

        Returns:
            JSONResponse: Counters, per-row errors and stage diagnostics, or 400 for unreadable uploads.

        Raises:
            RuntimeError: Raised when execution fails outside the per-row error model.
        """

        workbook_or_error = _api_read_upload(file, settings.import_max_upload_bytes)
        if isinstance(workbook_or_error, JSONResponse):
            return workbook_or_error

        execution_result = import_orchestrator.import_execute_workbook(workbook_or_error)
        payload = {
            "success": execution_result.success,
            "message": execution_result.message,
            "stats": api_serialize_import_counters(execution_result.counters),
            "diagnostics": execution_result.diagnostics,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/chunked")
    def api_import_chunk(
        body: ChunkImportBody,
        x_user_id: str | None = Header(default=None),
    ) -> JSONResponse:
        """Import one chunk of a multi-request upload session.

        Returns:
            JSONResponse: Progress, cumulative stats and this chunk's errors.

        Raises:
            RuntimeError: This handler maps job failures to error payloads.
        """

        user_id = (x_user_id or "").strip() or _ANONYMOUS_USER_ID
        request = ChunkImportRequest(
            session_id=body.session_id,
            chunk_index=body.chunk_index,
            total_chunks=body.total_chunks,
            mandates=tuple(row.to_raw_row() for row in body.mandates),
            day_values=tuple(row.to_raw_row() for row in body.day_values),
            is_first_chunk=body.is_first_chunk,
            is_last_chunk=body.is_last_chunk,
        )
        try:
            chunk_result = import_orchestrator.import_execute_chunk(request, user_id=user_id)
        except ImportSessionNotFoundError as error:
            return _api_error_response(str(error), status.HTTP_404_NOT_FOUND)
        except ImportSessionClosedError as error:
            return _api_error_response(str(error), status.HTTP_409_CONFLICT)
        except ValueError as error:
            return _api_error_response(str(error), status.HTTP_400_BAD_REQUEST)
        except RuntimeError as error:
            logger.error("chunk import failed session_id=%s: %s", body.session_id, error)
            return _api_error_response(str(error), status.HTTP_500_INTERNAL_SERVER_ERROR)

        cumulative_stats = api_serialize_import_counters(chunk_result.cumulative)
        payload = {
            "success": True,
            "progress": {
                "chunkIndex": chunk_result.chunk_index + 1,
                "totalChunks": chunk_result.total_chunks,
                "processedRows": chunk_result.cumulative.processed_rows,
                "percentage": chunk_result.percentage,
            },
            "stats": cumulative_stats,
            "errors": chunk_result.chunk_errors,
            "isComplete": chunk_result.is_complete,
            "finalStats": cumulative_stats if chunk_result.is_complete else None,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/sessions/{session_id}")
    def api_import_session_detail(session_id: str, x_user_id: str | None = Header(default=None)) -> JSONResponse:
        """Return status and cumulative counters of a live upload session.

        Returns:
            JSONResponse: Session payload or 404 when absent or expired.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        user_id = (x_user_id or "").strip() or _ANONYMOUS_USER_ID
        session = import_orchestrator.import_get_session(session_id, user_id=user_id)
        if session is None:
            return _api_error_response(f"import session not found: {session_id}", status.HTTP_404_NOT_FOUND)

        payload = {
            "sessionId": session.session_id,
            "status": session.status.value,
            "createdAtUtc": session.created_at_utc.isoformat(),
            "lastChunkIndex": session.last_chunk_index,
            "totalChunks": session.total_chunks,
            "processedRows": session.counters.processed_rows,
            "mappedMandates": len(session.mandate_mapping),
            "stats": api_serialize_import_counters(session.counters),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/preview")
    def api_import_preview(file: UploadFile = File(...)) -> JSONResponse:
        """Analyze a workbook upload without writing anything.

        Returns:
            JSONResponse: Preview payload, or 400 for unreadable uploads.

        Raises:
            RuntimeError: Raised when existence lookups fail.
        """

        workbook_or_error = _api_read_upload(file, settings.import_max_upload_bytes)
        if isinstance(workbook_or_error, JSONResponse):
            return workbook_or_error

        preview_data = job_import_build_preview(
            workbook=workbook_or_error,
            organization_id=settings.organization_id,
            max_valid_date=settings.import_max_valid_date or datetime.now(timezone.utc).date(),
            mandate_repository=mandate_repository,
            row_limit=settings.import_preview_row_limit,
            large_file_threshold=settings.import_large_file_threshold,
            day_first=settings.import_day_first,
        )
        payload = {"success": True, "message": "preview generated", "data": preview_data}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/template")
    def api_import_template() -> Response:
        """Download the import template workbook.

        Returns:
            Response: `.xlsx` attachment.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        return Response(
            content=adapter_build_import_template(),
            media_type=XLSX_CONTENT_TYPE,
            headers={"Content-Disposition": 'attachment; filename="import-template.xlsx"'},
        )

    return router


def api_serialize_import_counters(counters: ImportCounters) -> dict[str, object]:
    """Serialize import counters into the wire `stats` object.

    Args:
        counters: Import counters.

    Returns:
        dict[str, object]: JSON-compatible stats payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "mandatesCreated": counters.mandates_created,
        "mandatesUpdated": counters.mandates_updated,
        "valuesCreated": counters.values_created,
        "valuesSkipped": counters.values_updated,
        "errors": list(counters.errors),
    }


def _api_read_upload(file: UploadFile, max_upload_bytes: int):
    """Read and decode an uploaded workbook, or build the 400/413 response rejecting it."""

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    filename = (file.filename or "").lower()
    if content_type not in _ACCEPTED_UPLOAD_CONTENT_TYPES and not filename.endswith(".xlsx"):
        return _api_error_response(f"unsupported content type: {content_type}", status.HTTP_400_BAD_REQUEST)

    payload_bytes = file.file.read(max_upload_bytes + 1)
    if len(payload_bytes) > max_upload_bytes:
        return _api_error_response(
            f"file exceeds {max_upload_bytes} bytes",
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    if not payload_bytes:
        return _api_error_response("empty upload", status.HTTP_400_BAD_REQUEST)

    try:
        return adapter_read_import_workbook(payload_bytes)
    except MissingRequiredSheetError as error:
        return _api_error_response(
            f"invalid workbook: sheets 'Mandants' and 'DayValues' are required ({error})",
            status.HTTP_400_BAD_REQUEST,
        )
    except WorkbookReadError as error:
        return _api_error_response(str(error), status.HTTP_400_BAD_REQUEST)


def _api_error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"status": "error", "message": message}, status_code=status_code)
