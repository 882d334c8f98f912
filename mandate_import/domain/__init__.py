"""Domain models and pure parsing rules used across application layer boundaries."""

from .categories import CategoryClassificationError, domain_classify_category
from .models import HealthStatus, ImportWorkbook, MandateGroup, RawMandateRow, RawValueRow
from .parsing import (
	DateFormatError,
	FutureDateError,
	NumericValueError,
	domain_parse_import_date,
	domain_parse_import_number,
)
from .timeline import domain_build_stage_event, domain_elapsed_ms

__all__ = [
	"CategoryClassificationError",
	"DateFormatError",
	"FutureDateError",
	"HealthStatus",
	"ImportWorkbook",
	"MandateGroup",
	"NumericValueError",
	"RawMandateRow",
	"RawValueRow",
	"domain_build_stage_event",
	"domain_classify_category",
	"domain_elapsed_ms",
	"domain_parse_import_date",
	"domain_parse_import_number",
]
