"""Regression tests for category label classification."""

import pytest

from mandate_import.domain import CategoryClassificationError, MandateGroup, domain_classify_category


@pytest.mark.parametrize(
    ("label", "expected_group"),
    [
        ("Hébergement", MandateGroup.LODGING),
        ("HEBERGEMENT", MandateGroup.LODGING),
        ("Hôtel - hébergement", MandateGroup.LODGING),
        ("Accommodation", MandateGroup.LODGING),
        ("Restauration", MandateGroup.DINING),
        ("restaurant gastronomique", MandateGroup.DINING),
        ("Fine dining", MandateGroup.DINING),
    ],
)
def test_domain_classify_category_matches_synonyms_case_insensitively(
    label: str,
    expected_group: MandateGroup,
) -> None:
    """Classify labels by case-insensitive synonym substring match.

    Returns:
        None: Assertions validate group classification.

    Raises:
        AssertionError: Raised when a known synonym is not recognized.
    """

    assert domain_classify_category(label) == expected_group


def test_domain_classify_category_checks_lodging_before_dining() -> None:
    """Prefer LODGING when a label carries synonyms of both groups."""

    assert domain_classify_category("Hébergement et restauration") == MandateGroup.LODGING


@pytest.mark.parametrize("label", ["Spa", "", "   ", None])
def test_domain_classify_category_rejects_unknown_labels(label: object) -> None:
    """Raise a classification error carrying the original label.

    Returns:
        None: Assertions validate unknown label handling.

    Raises:
        AssertionError: Raised when unknown labels are classified.
    """

    with pytest.raises(CategoryClassificationError) as error_info:
        domain_classify_category(label)
    assert error_info.value.label == label
