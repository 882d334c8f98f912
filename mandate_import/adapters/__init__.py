"""Adapter layer package for spreadsheet file boundaries."""

from .workbook import (
	DAY_VALUE_COLUMNS,
	DAY_VALUES_SHEET_NAME,
	MANDATE_COLUMNS,
	MANDATES_SHEET_NAME,
	REQUIRED_SHEET_NAMES,
	MissingRequiredSheetError,
	WorkbookReadError,
	adapter_build_import_template,
	adapter_read_import_workbook,
)

__all__ = [
	"DAY_VALUE_COLUMNS",
	"DAY_VALUES_SHEET_NAME",
	"MANDATE_COLUMNS",
	"MANDATES_SHEET_NAME",
	"REQUIRED_SHEET_NAMES",
	"MissingRequiredSheetError",
	"WorkbookReadError",
	"adapter_build_import_template",
	"adapter_read_import_workbook",
]
