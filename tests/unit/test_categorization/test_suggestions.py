"""Unit tests for the keyword index behind category suggestions."""

from uuid import uuid4

import pytest

from moneyapp.categorization.suggestions import (
    EXACT_MERCHANT_CONFIDENCE,
    KeywordIndex,
    KeywordIndexRegistry,
    extract_keywords,
    score_keyword_match,
)


def test_extract_keywords() -> None:
    assert extract_keywords("Joe's Coffee, Coffee Roasters") == ["joe's", "coffee", "roasters"]
    assert extract_keywords("a bc the") == []
    assert extract_keywords(None) == []


def test_score_keyword_match() -> None:
    assert score_keyword_match("netflix", "netflix monthly") == pytest.approx(1.0)
    assert score_keyword_match("uber", "uber trip") == pytest.approx(0.7)
    # Substring only: no exact-word bonus
    assert score_keyword_match("uber", "ubereats") == pytest.approx(0.5)


class TestKeywordIndex:
    def test_keyword_match_from_seeds(self) -> None:
        result = KeywordIndex().categorize("UBER TRIP")
        assert result.category == "Transportation"
        assert result.method == "keyword"
        assert result.confidence == pytest.approx(0.7)

    def test_exact_merchant_after_learning(self) -> None:
        index = KeywordIndex()
        index.learn("Blue Bottle", "BLUE BOTTLE COFFEE 12", "Coffee Shops")

        result = index.categorize("anything", "blue  bottle")
        assert result.category == "Coffee Shops"
        assert result.method == "exact_merchant"
        assert result.confidence == EXACT_MERCHANT_CONFIDENCE

    def test_learned_keywords_override_seeds(self) -> None:
        index = KeywordIndex()
        index.learn(None, "Starbucks Reserve", "Treats")
        assert index.keywords["starbucks"] == "Treats"
        assert index.keywords["reserve"] == "Treats"

    def test_provider_fallback_when_keywords_are_weak(self) -> None:
        result = KeywordIndex().categorize("ZX 42", None, ["Recreation"])
        assert result.category == "Entertainment"
        assert result.method == "provider_fallback"

    def test_heuristic_when_nothing_else_matches(self) -> None:
        result = KeywordIndex().categorize("monthly subscription box")
        assert result.category == "Bills & Utilities"
        assert result.method == "amount_heuristic"

    def test_no_signal_is_other(self) -> None:
        result = KeywordIndex(seed_common=False).categorize("")
        assert result.category == "Other"
        assert result.confidence == 0.0

    def test_suggest_dedupes_categories(self) -> None:
        suggestions = KeywordIndex().suggest("STARBUCKS COFFEE")
        assert [s.category for s in suggestions] == ["Food & Dining"]

    def test_suggest_is_limited_and_ordered(self) -> None:
        suggestions = KeywordIndex().suggest("uber netflix pharmacy hotel")
        assert len(suggestions) == 3
        assert {s.category for s in suggestions[:2]} == {"Entertainment", "Healthcare"}
        assert suggestions[2].category == "Travel"
        assert all(s.method == "keyword" for s in suggestions)

    def test_suggest_uses_merchant_history(self) -> None:
        index = KeywordIndex()
        index.add_history("Corner Deli", "Lunch")
        suggestions = index.suggest("CORNER DELI #12", "Corner Deli")
        assert [s.category for s in suggestions] == ["Lunch"]

    def test_warm_counts_usable_history(self) -> None:
        index = KeywordIndex(seed_common=False)
        count = index.warm([("Blue Bottle", "Coffee Shops"), (None, "Other"), ("Nameless", None)])
        assert count == 1
        assert index.warmed is True
        assert index.merchants == {"blue bottle": "Coffee Shops"}
        assert index.keywords == {"blue": "Coffee Shops", "bottle": "Coffee Shops"}

    def test_warm_with_empty_history(self) -> None:
        index = KeywordIndex()
        assert index.warm([]) == 0
        assert index.warmed is True


class TestKeywordIndexRegistry:
    async def test_get_warms_once(self) -> None:
        registry = KeywordIndexRegistry()
        user_id = uuid4()
        calls = []

        async def loader(uid):
            calls.append(uid)
            return [("Blue Bottle", "Coffee Shops")]

        first = await registry.get(user_id, loader=loader)
        second = await registry.get(user_id, loader=loader)

        assert first is second
        assert calls == [user_id]
        assert first.merchants["blue bottle"] == "Coffee Shops"

    async def test_indexes_are_per_user(self) -> None:
        registry = KeywordIndexRegistry()
        a = await registry.get(uuid4())
        b = await registry.get(uuid4())
        a.learn("Shop", None, "Mine")
        assert "shop" not in b.merchants

    async def test_peek_and_discard(self) -> None:
        registry = KeywordIndexRegistry()
        user_id = uuid4()
        assert registry.peek(user_id) is None

        index = await registry.get(user_id)
        assert registry.peek(user_id) is index

        registry.discard(user_id)
        assert registry.peek(user_id) is None
