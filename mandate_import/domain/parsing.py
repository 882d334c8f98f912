"""Locale-ambiguous date and numeric parsing for spreadsheet cells.

Spreadsheet exports arrive without a declared schema: dates may be day-first or
month-first and numbers may use either `,` or `.` as decimal separator. These
helpers resolve the ambiguity with fixed, documented rules so every import path
normalizes cells the same way.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Final

_DOMAIN_SLASH_DATE_PATTERN: Final = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})(?:[ T]\d{1,2}:\d{2}(?::\d{2})?)?$")
_DOMAIN_ISO_DATE_PATTERN: Final = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DOMAIN_FALLBACK_DATE_FORMATS: Final[tuple[str, ...]] = (
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%d.%m.%y",
    "%Y%m%d",
    "%d-%m-%Y",
)
_DOMAIN_LONG_DIGIT_RUN_PATTERN: Final = re.compile(r"\d{4,}")
_DOMAIN_NON_NUMERIC_PATTERN: Final = re.compile(r"[^\d.]")


class DateFormatError(ValueError):
    """Raised when a date cell cannot be resolved to a calendar date.

    Attributes:
        raw_value: Offending cell content.
    """

    def __init__(self, message: str, raw_value: object):
        super().__init__(message)
        self.raw_value = raw_value


class FutureDateError(DateFormatError):
    """Raised by strict parsing when a date resolves past the accepted ceiling."""


class NumericValueError(ValueError):
    """Raised when a numeric cell is not a finite non-negative number.

    Attributes:
        raw_value: Offending cell content.
    """

    def __init__(self, message: str, raw_value: object):
        super().__init__(message)
        self.raw_value = raw_value


def domain_parse_import_date(
    value: str | date | datetime | None,
    day_first: bool = True,
    max_valid_date: date | None = None,
) -> date:
    """Parse one spreadsheet date cell into a calendar date.

    Rules, in order: typed dates pass through (datetimes are truncated to their
    UTC date); `D/M/Y` text is disambiguated by component magnitude and then by
    the `day_first` convention; ISO `YYYY-MM-DD` is parsed directly; a fixed list
    of fallback formats is tried last.

    Args:
        value: Raw cell content.
        day_first: Convention used when both `D/M` components are <= 12.
        max_valid_date: Optional ceiling enabling strict parsing.

    Returns:
        date: Parsed calendar date.

    Raises:
        DateFormatError: Raised when the value cannot be resolved.
        FutureDateError: Raised when strict parsing rejects a date past the ceiling.
    """

    parsed_date = _domain_parse_date_unchecked(value=value, day_first=day_first)
    if max_valid_date is not None and parsed_date > max_valid_date:
        raise FutureDateError(
            f"future date {parsed_date.isoformat()} (after {max_valid_date.isoformat()}), check the date format: {value!r}",
            raw_value=value,
        )
    return parsed_date


def domain_parse_import_number(value: str | int | float | Decimal | None) -> float:
    """Parse one spreadsheet numeric cell into a non-negative float.

    When both separators are present the later one is the decimal separator.
    A lone comma is decimal only when at most two digits follow it and the
    integer part has no run of four or more digits.

    Args:
        value: Raw cell content.

    Returns:
        float: Parsed finite non-negative value.

    Raises:
        NumericValueError: Raised when the value is missing, malformed, NaN, infinite or negative.
    """

    if value is None or isinstance(value, bool):
        raise NumericValueError(f"invalid numeric value: {value!r}", raw_value=value)

    if isinstance(value, (int, float, Decimal)):
        parsed_value = float(value)
    elif isinstance(value, str):
        normalized_text = _domain_normalize_numeric_text(value)
        try:
            parsed_value = float(normalized_text)
        except ValueError as error:
            raise NumericValueError(f"invalid numeric value: {value!r}", raw_value=value) from error
    else:
        raise NumericValueError(f"invalid numeric value: {value!r}", raw_value=value)

    if math.isnan(parsed_value) or math.isinf(parsed_value) or parsed_value < 0:
        raise NumericValueError(f"invalid numeric value: {value!r}", raw_value=value)
    return parsed_value


def _domain_parse_date_unchecked(value: str | date | datetime | None, day_first: bool) -> date:
    """Resolve one date cell without applying the strict ceiling.

    Args:
        value: Raw cell content.
        day_first: Convention used when both `D/M` components are <= 12.

    Returns:
        date: Parsed calendar date.

    Raises:
        DateFormatError: Raised when the value cannot be resolved.
    """

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).date()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise DateFormatError(f"date format not recognized: {value!r}", raw_value=value)

    normalized_value = value.strip()

    slash_match = _DOMAIN_SLASH_DATE_PATTERN.match(normalized_value)
    if slash_match is not None:
        first, second, year = (int(part) for part in slash_match.groups())
        if year < 100:
            year += 2000
        if first > 12:
            day, month = first, second
        elif second > 12:
            month, day = first, second
        elif day_first:
            day, month = first, second
        else:
            month, day = first, second
        return _domain_build_checked_date(year=year, month=month, day=day, raw_value=value)

    iso_match = _DOMAIN_ISO_DATE_PATTERN.match(normalized_value)
    if iso_match is not None:
        year, month, day = (int(part) for part in iso_match.groups())
        return _domain_build_checked_date(year=year, month=month, day=day, raw_value=value)

    try:
        return _domain_parse_date_unchecked(datetime.fromisoformat(normalized_value), day_first=day_first)
    except ValueError:
        pass

    for supported_format in _DOMAIN_FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(normalized_value, supported_format).date()
        except ValueError:
            continue

    raise DateFormatError(f"date format not recognized: {value!r}", raw_value=value)


def _domain_build_checked_date(year: int, month: int, day: int, raw_value: object) -> date:
    """Build a date after validating resolved day and month ranges.

    Args:
        year: Resolved four-digit year.
        month: Resolved month.
        day: Resolved day of month.
        raw_value: Original cell content for error context.

    Returns:
        date: Valid calendar date.

    Raises:
        DateFormatError: Raised when components are out of range or form an impossible date.
    """

    if not 1 <= month <= 12 or not 1 <= day <= 31:
        raise DateFormatError(
            f"invalid date {raw_value!r}: resolved day={day} month={month} out of range",
            raw_value=raw_value,
        )
    try:
        return date(year, month, day)
    except ValueError as error:
        raise DateFormatError(f"invalid date {raw_value!r}: {error}", raw_value=raw_value) from error


def _domain_normalize_numeric_text(value: str) -> str:
    """Normalize locale-specific separators into a float-parsable string.

    Args:
        value: Raw numeric text.

    Returns:
        str: Text with `.` as the only decimal separator and no grouping characters.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    text = value.strip()
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        head, _, tail = text.rpartition(",")
        tail_digit_count = sum(1 for character in tail if character.isdigit())
        if tail_digit_count <= 2 and _DOMAIN_LONG_DIGIT_RUN_PATTERN.search(head) is None:
            text = f"{head.replace(',', '')}.{tail}"
        else:
            text = text.replace(",", "")

    is_negative = text.startswith("-")
    cleaned_text = _DOMAIN_NON_NUMERIC_PATTERN.sub("", text)
    if is_negative:
        return f"-{cleaned_text}"
    return cleaned_text


__all__ = [
    "DateFormatError",
    "FutureDateError",
    "NumericValueError",
    "domain_parse_import_date",
    "domain_parse_import_number",
]
