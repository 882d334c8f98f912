"""Free-text category label classification into mandate groups."""

from __future__ import annotations

from typing import Final

from .models import MandateGroup

# Checked in declaration order; the first group with a matching synonym wins.
DOMAIN_CATEGORY_SYNONYMS: Final[tuple[tuple[MandateGroup, tuple[str, ...]], ...]] = (
    (MandateGroup.LODGING, ("hébergement", "hebergement", "lodging", "accommodation")),
    (MandateGroup.DINING, ("restauration", "restaurant", "dining")),
)


class CategoryClassificationError(ValueError):
    """Raised when a category label matches no known mandate group.

    Attributes:
        label: Original category label.
    """

    def __init__(self, label: object):
        super().__init__(f"unknown category: {label!r}")
        self.label = label


def domain_classify_category(label: str | None) -> MandateGroup:
    """Classify one category label by case-insensitive synonym substring match.

    Args:
        label: Free-text category label from the spreadsheet.

    Returns:
        MandateGroup: Matched mandate group.

    Raises:
        CategoryClassificationError: Raised when the label is blank or unrecognized.
    """

    if not isinstance(label, str) or not label.strip():
        raise CategoryClassificationError(label)

    normalized_label = label.strip().casefold()
    for group, synonyms in DOMAIN_CATEGORY_SYNONYMS:
        if any(synonym in normalized_label for synonym in synonyms):
            return group
    raise CategoryClassificationError(label)


__all__ = ["DOMAIN_CATEGORY_SYNONYMS", "CategoryClassificationError", "domain_classify_category"]
