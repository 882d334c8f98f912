"""Job layer package for import workflow orchestration boundaries."""

from .import_orchestrator import ImportOrchestratorConfig, MandateImportOrchestrator, job_import_chunk_percentage
from .import_preview import PREVIEW_DEFAULT_CURRENCY, job_import_build_preview
from .interfaces import (
	ChunkImportRequest,
	ChunkImportResult,
	ImportCounters,
	ImportExecutionResult,
	ImportOrchestratorPort,
	ImportWorkbook,
)
from .mandate_reconciler import MandateReconcileOutcome, MandateReconciler
from .quota import MandateQuotaDecision, MandateQuotaPolicy
from .session_tracker import (
	ImportSession,
	ImportSessionClosedError,
	ImportSessionNotFoundError,
	ImportSessionStatus,
	ImportSessionStorePort,
	ImportSessionTracker,
	InMemoryImportSessionStore,
)
from .stats_finalizer import StatsFinalizeOutcome, StatsFinalizer, job_stats_repair_organization
from .value_writer import BatchValueWriter, ValueWriteOutcome, ValueWriterConfig

__all__ = [
	"BatchValueWriter",
	"ChunkImportRequest",
	"ChunkImportResult",
	"ImportCounters",
	"ImportExecutionResult",
	"ImportOrchestratorConfig",
	"ImportOrchestratorPort",
	"ImportSession",
	"ImportSessionClosedError",
	"ImportSessionNotFoundError",
	"ImportSessionStatus",
	"ImportSessionStorePort",
	"ImportSessionTracker",
	"ImportWorkbook",
	"InMemoryImportSessionStore",
	"MandateImportOrchestrator",
	"MandateQuotaDecision",
	"MandateQuotaPolicy",
	"MandateReconcileOutcome",
	"MandateReconciler",
	"PREVIEW_DEFAULT_CURRENCY",
	"StatsFinalizeOutcome",
	"StatsFinalizer",
	"ValueWriteOutcome",
	"ValueWriterConfig",
	"job_import_build_preview",
	"job_import_chunk_percentage",
	"job_stats_repair_organization",
]
