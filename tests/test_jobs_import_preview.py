"""Tests for dry-run workbook preview analysis."""

from datetime import date

from mandate_import.db import MandateUpsertRequest
from mandate_import.domain import ImportWorkbook, MandateGroup, RawMandateRow, RawValueRow
from mandate_import.jobs import job_import_build_preview

ORGANIZATION_ID = "org-1"


def test_preview_classifies_mandate_rows(memory_database) -> None:
    """Report new, existing and error statuses with defaults for id and currency.

    Returns:
        None: Assertions validate mandate preview rows.

    Raises:
        AssertionError: Raised when statuses or defaults are wrong.
    """

    memory_database.db_mandate_upsert(
        MandateUpsertRequest(organization_id=ORGANIZATION_ID, name="Lodge", group=MandateGroup.LODGING)
    )
    workbook = ImportWorkbook(
        mandates=(
            RawMandateRow(external_id="1", name="Lodge", category="Hébergement", currency="EUR"),
            RawMandateRow(external_id=None, name="Bistro", category="Restauration"),
            RawMandateRow(external_id="3", name=None, category="Restauration"),
            RawMandateRow(external_id="4", name="Spa", category=None),
            RawMandateRow(external_id="5", name="Gym", category="Fitness"),
        ),
        day_values=(),
    )

    preview = job_import_build_preview(
        workbook=workbook,
        organization_id=ORGANIZATION_ID,
        max_valid_date=date(2030, 1, 1),
        mandate_repository=memory_database,
    )

    mandates = preview["mandates"]
    assert [mandate["status"] for mandate in mandates] == ["existing", "new", "error", "error", "error"]
    assert mandates[0]["currency"] == "EUR"
    assert mandates[1]["id"] == "row-3"
    assert mandates[1]["currency"] == "CHF"
    assert [mandates[index]["error"] for index in (2, 3, 4)] == [
        "missing name",
        "missing category",
        "unknown category: Fitness",
    ]
    assert preview["warnings"] == ["3 mandate row(s) contain errors"]
    assert len(memory_database.mandates) == 1


def test_preview_parses_first_value_rows_strictly() -> None:
    """Parse only the first rows, report the date range and large-file warnings.

    Returns:
        None: Assertions validate day-value preview payload.

    Raises:
        AssertionError: Raised when parsing or warnings diverge.
    """

    day_values = (
        RawValueRow("01/02/24", "1'200.50", "1", "Lodge"),
        RawValueRow("2024-01-15", "10", "1", "Lodge"),
        RawValueRow("01/02/31", "10", "1", "Lodge"),
        RawValueRow("05/02/24", "abc", None, None),
        RawValueRow("09/09/24", "1", "1", "Lodge"),
    )

    preview = job_import_build_preview(
        workbook=ImportWorkbook(mandates=(), day_values=day_values),
        organization_id=ORGANIZATION_ID,
        max_valid_date=date(2025, 1, 1),
        row_limit=4,
        large_file_threshold=3,
    )

    values = preview["dayValues"]
    assert values["total"] == 5
    assert len(values["preview"]) == 4
    assert values["preview"][0] == {
        "date": "2024-02-01",
        "value": 1200.5,
        "mandateId": "1",
        "mandateName": "Lodge",
        "status": "new",
        "error": None,
    }
    assert values["preview"][2]["status"] == "error"
    assert "future date" in values["preview"][2]["error"]
    assert values["preview"][3]["error"].endswith("missing MandantId")
    assert values["dateRange"] == {"start": "2024-01-15", "end": "2024-02-05"}
    assert preview["warnings"] == [
        "2 of the first 4 value row(s) contain errors",
        "large file: 5 values to import",
    ]
