"""Dry-run analysis of an import workbook without persistence writes."""

from __future__ import annotations

from datetime import date

from mandate_import.db import MandateRepositoryPort
from mandate_import.domain import (
    CategoryClassificationError,
    DateFormatError,
    ImportWorkbook,
    NumericValueError,
    RawMandateRow,
    domain_classify_category,
    domain_parse_import_date,
    domain_parse_import_number,
)

PREVIEW_DEFAULT_CURRENCY = "CHF"


def job_import_build_preview(
    workbook: ImportWorkbook,
    organization_id: str,
    max_valid_date: date,
    mandate_repository: MandateRepositoryPort | None = None,
    row_limit: int = 10,
    large_file_threshold: int = 1000,
    day_first: bool = True,
) -> dict[str, object]:
    """Build the preview payload for one decoded workbook.

    Mandate rows are validated and, when a repository is given, looked up by
    name to report `existing` versus `new`. Only the first `row_limit` day
    values are parsed, with the strict date ceiling.

    Args:
        workbook: Decoded workbook rows.
        organization_id: Organization used for existing-mandate lookups.
        max_valid_date: Strict-parsing ceiling for previewed dates.
        mandate_repository: Optional repository for existence checks.
        row_limit: Number of day-value rows to parse.
        large_file_threshold: Value-row count above which a warning is emitted.
        day_first: Date convention when both `D/M` components are <= 12.

    Returns:
        dict[str, object]: JSON-compatible preview payload with `mandates`, `dayValues`, `errors`, `warnings`.

    Raises:
        RuntimeError: Raised when the existence lookup fails.
    """

    mandate_previews = [
        _job_preview_mandate_row(
            row_number=index + 2,
            row=row,
            organization_id=organization_id,
            mandate_repository=mandate_repository,
        )
        for index, row in enumerate(workbook.mandates)
    ]

    value_previews: list[dict[str, object]] = []
    valid_dates: list[date] = []
    for row in workbook.day_values[:row_limit]:
        problems: list[str] = []
        parsed_date: date | None = None
        parsed_value: float | None = None
        try:
            parsed_date = domain_parse_import_date(row.raw_date, day_first=day_first, max_valid_date=max_valid_date)
        except DateFormatError as error:
            problems.append(str(error))
        try:
            parsed_value = domain_parse_import_number(row.raw_value)
        except NumericValueError as error:
            problems.append(str(error))
        if row.mandate_ref is None or not str(row.mandate_ref).strip():
            problems.append("missing MandantId")

        if parsed_date is not None:
            valid_dates.append(parsed_date)
        value_previews.append(
            {
                "date": parsed_date.isoformat() if parsed_date is not None else _job_preview_text(row.raw_date),
                "value": parsed_value,
                "mandateId": _job_preview_text(row.mandate_ref),
                "mandateName": _job_preview_text(row.mandate_name),
                "status": "error" if problems else "new",
                "error": ", ".join(problems) if problems else None,
            }
        )

    date_range = {"start": "", "end": ""}
    if valid_dates:
        date_range = {"start": min(valid_dates).isoformat(), "end": max(valid_dates).isoformat()}

    warnings: list[str] = []
    mandate_error_count = sum(1 for preview in mandate_previews if preview["status"] == "error")
    value_error_count = sum(1 for preview in value_previews if preview["status"] == "error")
    if mandate_error_count > 0:
        warnings.append(f"{mandate_error_count} mandate row(s) contain errors")
    if value_error_count > 0:
        warnings.append(f"{value_error_count} of the first {len(value_previews)} value row(s) contain errors")
    if len(workbook.day_values) > large_file_threshold:
        warnings.append(f"large file: {len(workbook.day_values)} values to import")

    return {
        "mandates": mandate_previews,
        "dayValues": {
            "total": len(workbook.day_values),
            "preview": value_previews,
            "dateRange": date_range,
        },
        "errors": [],
        "warnings": warnings,
    }


def _job_preview_mandate_row(
    row_number: int,
    row: RawMandateRow,
    organization_id: str,
    mandate_repository: MandateRepositoryPort | None,
) -> dict[str, object]:
    """Validate one mandate row and classify it as new, existing or error."""

    name = _job_preview_text(row.name)
    category = _job_preview_text(row.category)
    preview: dict[str, object] = {
        "id": _job_preview_text(row.external_id) or f"row-{row_number}",
        "name": name,
        "category": category,
        "currency": _job_preview_text(row.currency) or PREVIEW_DEFAULT_CURRENCY,
        "status": "new",
        "error": None,
    }

    if not name:
        preview.update(status="error", error="missing name")
        return preview
    if not category:
        preview.update(status="error", error="missing category")
        return preview
    try:
        domain_classify_category(category)
    except CategoryClassificationError:
        preview.update(status="error", error=f"unknown category: {category}")
        return preview

    if mandate_repository is not None and mandate_repository.db_mandate_find_by_name(organization_id, name) is not None:
        preview["status"] = "existing"
    return preview


def _job_preview_text(value: object) -> str:
    """Return stripped cell text, empty for missing cells."""

    if value is None:
        return ""
    return str(value).strip()
