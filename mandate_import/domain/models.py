"""Typed domain models shared across runtime layers.

Raw rows are transient contracts produced by the workbook adapter and the
chunked JSON API; they carry cell content untouched so parsing and error
reporting stay in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class MandateGroup(str, Enum):
    """Closed set of mandate groups stored in `mandate.mandate_group`."""

    LODGING = "LODGING"
    DINING = "DINING"


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class RawMandateRow:
    """One mandate row as read from the `Mandants` sheet or a chunk payload.

    Attributes:
        external_id: Caller-side mandate id referenced by day-value rows.
        name: Display name, unique within one organization.
        category: Free-text category label.
        currency: Optional currency code.
    """

    external_id: str | None
    name: str | None
    category: str | None
    currency: str | None = None

    def raw_describe(self) -> str:
        """Render the row for per-row error messages."""

        return (
            f"{{Id: {self.external_id!r}, Nom: {self.name!r}, "
            f"Catégorie: {self.category!r}, Monnaie: {self.currency!r}}}"
        )


@dataclass(frozen=True)
class RawValueRow:
    """One day-value row as read from the `DayValues` sheet or a chunk payload.

    Attributes:
        raw_date: Date cell text or typed date.
        raw_value: Numeric cell text or typed number.
        mandate_ref: External mandate id the value belongs to.
        mandate_name: Optional display name used only in diagnostics.
    """

    raw_date: str | date | datetime | None
    raw_value: str | int | float | None
    mandate_ref: str | None
    mandate_name: str | None = None

    def raw_label(self) -> str:
        """Return the best human label for the owning mandate."""

        return self.mandate_name or self.mandate_ref or "?"

    def raw_describe(self) -> str:
        """Render the row for per-row error messages."""

        return (
            f"{{Date: {self.raw_date!r}, Valeur: {self.raw_value!r}, "
            f"MandantId: {self.mandate_ref!r}, Mandant: {self.mandate_name!r}}}"
        )


@dataclass(frozen=True)
class ImportWorkbook:
    """Decoded import workbook content.

    Attributes:
        mandates: Rows of the `Mandants` sheet.
        day_values: Rows of the `DayValues` sheet.
    """

    mandates: tuple[RawMandateRow, ...]
    day_values: tuple[RawValueRow, ...]
