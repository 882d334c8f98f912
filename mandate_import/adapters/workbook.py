"""openpyxl adapter decoding import workbooks and building the import template."""

from __future__ import annotations

import io
import logging
import zipfile
from datetime import date, datetime
from typing import Any, Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from mandate_import.domain import ImportWorkbook, RawMandateRow, RawValueRow

logger = logging.getLogger(__name__)

MANDATES_SHEET_NAME = "Mandants"
DAY_VALUES_SHEET_NAME = "DayValues"
REQUIRED_SHEET_NAMES = (MANDATES_SHEET_NAME, DAY_VALUES_SHEET_NAME)

MANDATE_COLUMNS = ("Id", "Nom", "Monnaie", "Catégorie")
DAY_VALUE_COLUMNS = ("Date", "Valeur", "MandantId", "Mandant")

_TEMPLATE_MANDATE_ROWS = (
    ("1", "Hôtel du Lac", "CHF", "Hébergement"),
    ("2", "Restaurant de la Gare", "CHF", "Restauration"),
)
_TEMPLATE_DAY_VALUE_ROWS = (
    ("15/01/2024", "1'250.50", "1", "Hôtel du Lac"),
    ("16/01/2024", "1.180,75", "1", "Hôtel du Lac"),
    ("15/01/2024", "845,20", "2", "Restaurant de la Gare"),
    ("16/01/2024", 912.4, "2", "Restaurant de la Gare"),
)


class WorkbookReadError(ValueError):
    """Raised when an uploaded file cannot be decoded as an import workbook."""


class MissingRequiredSheetError(WorkbookReadError):
    """Raised when the workbook lacks one of the required sheets.

    Attributes:
        missing_sheets: Required sheet names absent from the workbook.
    """

    def __init__(self, missing_sheets: tuple[str, ...]):
        super().__init__(f"missing required sheets: {', '.join(missing_sheets)}")
        self.missing_sheets = missing_sheets


def adapter_read_import_workbook(payload_bytes: bytes) -> ImportWorkbook:
    """Decode `.xlsx` bytes into raw mandate and day-value rows.

    The first row of each sheet is the header; columns are matched by header
    name, so column order and extra columns do not matter. Fully empty rows
    are skipped. Cells are kept untouched except for ids, which are rendered
    as text (a whole-number float id `1.0` becomes `"1"`).

    Args:
        payload_bytes: Uploaded workbook content.

    Returns:
        ImportWorkbook: Decoded rows in sheet order.

    Raises:
        WorkbookReadError: Raised when the bytes are not a readable workbook.
        MissingRequiredSheetError: Raised when `Mandants` or `DayValues` is absent.
    """

    try:
        workbook = load_workbook(io.BytesIO(payload_bytes), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as error:
        raise WorkbookReadError(f"unreadable workbook: {error}") from error

    try:
        missing_sheets = tuple(name for name in REQUIRED_SHEET_NAMES if name not in workbook.sheetnames)
        if missing_sheets:
            raise MissingRequiredSheetError(missing_sheets)

        mandate_rows = tuple(
            RawMandateRow(
                external_id=_adapter_id_text(record.get("Id")),
                name=_adapter_optional_text(record.get("Nom")),
                category=_adapter_optional_text(record.get("Catégorie")),
                currency=_adapter_optional_text(record.get("Monnaie")),
            )
            for record in _adapter_iter_sheet_records(workbook[MANDATES_SHEET_NAME].iter_rows(values_only=True))
        )
        value_rows = tuple(
            RawValueRow(
                raw_date=record.get("Date"),
                raw_value=record.get("Valeur"),
                mandate_ref=_adapter_id_text(record.get("MandantId")),
                mandate_name=_adapter_optional_text(record.get("Mandant")),
            )
            for record in _adapter_iter_sheet_records(workbook[DAY_VALUES_SHEET_NAME].iter_rows(values_only=True))
        )
    finally:
        workbook.close()

    logger.info("decoded import workbook mandates=%d day_values=%d", len(mandate_rows), len(value_rows))
    return ImportWorkbook(mandates=mandate_rows, day_values=value_rows)


def adapter_build_import_template() -> bytes:
    """Build the downloadable import template workbook.

    Returns:
        bytes: `.xlsx` content with `Mandants` and `DayValues` sheets, headers and sample rows.
    """

    workbook = Workbook()
    mandates_sheet = workbook.active
    mandates_sheet.title = MANDATES_SHEET_NAME
    mandates_sheet.append(MANDATE_COLUMNS)
    for row in _TEMPLATE_MANDATE_ROWS:
        mandates_sheet.append(row)

    values_sheet = workbook.create_sheet(DAY_VALUES_SHEET_NAME)
    values_sheet.append(DAY_VALUE_COLUMNS)
    for row in _TEMPLATE_DAY_VALUE_ROWS:
        values_sheet.append(row)

    for sheet in (mandates_sheet, values_sheet):
        for column_letter in ("A", "B", "C", "D"):
            sheet.column_dimensions[column_letter].width = 22

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _adapter_iter_sheet_records(rows: Iterable[tuple[Any, ...]]) -> Iterable[dict[str, Any]]:
    """Yield header-keyed dicts for each non-empty data row."""

    row_iterator = iter(rows)
    header_row = next(row_iterator, None)
    if header_row is None:
        return
    headers = [None if cell is None else str(cell).strip() for cell in header_row]
    for row in row_iterator:
        if all(_adapter_is_empty_cell(cell) for cell in row):
            continue
        yield {header: cell for header, cell in zip(headers, row) if header}


def _adapter_is_empty_cell(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _adapter_optional_text(value: Any) -> str | None:
    if _adapter_is_empty_cell(value):
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value).strip()


def _adapter_id_text(value: Any) -> str | None:
    """Render an id cell as text; numeric ids lose a trailing `.0`."""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return _adapter_optional_text(value)
