from moneyapp.categorization.rules import (
    CANONICAL_CATEGORIES,
    MAX_CATEGORY_LENGTH,
    PROVIDER_PRIMARY_MAP,
    is_valid_category,
    normalize_category,
)


def test_normalize_category_collapses_whitespace() -> None:
    assert normalize_category("  Coffee   Shops ") == "Coffee Shops"
    assert normalize_category(None) == ""


def test_normalize_category_keeps_case() -> None:
    assert normalize_category("coffee shops") == "coffee shops"


def test_categories_are_an_open_set() -> None:
    assert is_valid_category("Food & Dining")
    assert is_valid_category("Kids' Allowance")
    assert not is_valid_category("   ")
    assert not is_valid_category("x" * (MAX_CATEGORY_LENGTH + 1))


def test_provider_map_targets_are_canonical() -> None:
    assert set(PROVIDER_PRIMARY_MAP.values()) <= set(CANONICAL_CATEGORIES)
