"""Confidence-scored categorization used by the correction workflow.

``KeywordIndex`` holds a user's merchant -> category and keyword -> category
associations. It starts from the common keyword seeds, is warmed from the
user's categorized history, and learns from corrections. Each user gets their
own index through ``KeywordIndexRegistry``; nothing here is process-global.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence
from uuid import UUID

from moneyapp.categorization.rules import (
    COMMON_KEYWORDS,
    HEURISTIC_KEYWORDS,
    OTHER,
    PROVIDER_PRIMARY_MAP,
)

MIN_KEYWORD_LENGTH = 4
PROVIDER_FALLBACK_CONFIDENCE = 0.6
HEURISTIC_CONFIDENCE = 0.4
EXACT_MERCHANT_CONFIDENCE = 0.95
MAX_SUGGESTIONS = 3

_WORD_EDGES = re.compile(r"^\W+|\W+$")


@dataclass(frozen=True)
class CategorySuggestion:
    category: str
    confidence: float
    method: str
    reason: str = ""


def score_keyword_match(keyword: str, search_text: str) -> float:
    """Score a keyword hit by length, exact-word match and repetition (max 1.0)."""
    confidence = min(len(keyword) / 10, 0.9)
    if keyword in search_text.split():
        confidence += 0.2
    occurrences = search_text.count(keyword)
    confidence += min(occurrences * 0.1, 0.3)
    return min(confidence, 1.0)


def extract_keywords(text: str | None) -> list[str]:
    """Words of ``text`` long enough to be meaningful keywords, lower-cased."""
    words = []
    for raw in (text or "").lower().split():
        word = _WORD_EDGES.sub("", raw)
        if len(word) >= MIN_KEYWORD_LENGTH and word not in words:
            words.append(word)
    return words


def _merchant_key(merchant_name: str) -> str:
    return re.sub(r"\s+", " ", merchant_name.strip().lower())


class KeywordIndex:
    """Merchant and keyword associations for one user."""

    def __init__(self, seed_common: bool = True):
        self.merchants: dict[str, str] = {}
        self.keywords: dict[str, str] = dict(COMMON_KEYWORDS) if seed_common else {}
        self.warmed = False

    def add_history(self, merchant_name: str | None, category: str | None) -> None:
        """Record one historically categorized transaction."""
        if not merchant_name or not category:
            return
        self.merchants[_merchant_key(merchant_name)] = category
        for word in extract_keywords(merchant_name):
            self.keywords[word] = category

    def warm(self, history: Iterable[tuple[str | None, str | None]]) -> int:
        """Seed from (merchant_name, category) pairs; tolerates empty history."""
        count = 0
        for merchant_name, category in history:
            if merchant_name and category:
                self.add_history(merchant_name, category)
                count += 1
        self.warmed = True
        return count

    def learn(self, merchant_name: str | None, transaction_name: str | None, category: str) -> None:
        if merchant_name:
            self.merchants[_merchant_key(merchant_name)] = category
        for word in extract_keywords(transaction_name):
            self.keywords[word] = category

    def _keyword_matches(self, search_text: str) -> list[CategorySuggestion]:
        matches = []
        for keyword, category in self.keywords.items():
            if keyword in search_text:
                matches.append(
                    CategorySuggestion(
                        category=category,
                        confidence=score_keyword_match(keyword, search_text),
                        method="keyword",
                        reason=f'Matches pattern: "{keyword}"',
                    )
                )
        return matches

    def categorize(
        self,
        transaction_name: str | None,
        merchant_name: str | None = None,
        provider_categories: Sequence[str] | None = None,
    ) -> CategorySuggestion:
        """Best single guess with its confidence and the method that produced it."""
        search_text = f"{transaction_name or ''} {merchant_name or ''}".strip().lower()

        if merchant_name:
            exact = self.merchants.get(_merchant_key(merchant_name))
            if exact:
                return CategorySuggestion(exact, EXACT_MERCHANT_CONFIDENCE, "exact_merchant")

        best = CategorySuggestion(OTHER, 0.0, "keyword")
        for match in self._keyword_matches(search_text):
            if match.confidence > best.confidence:
                best = match

        if best.confidence < 0.7 and provider_categories:
            mapped = PROVIDER_PRIMARY_MAP.get(provider_categories[0], OTHER)
            return CategorySuggestion(mapped, PROVIDER_FALLBACK_CONFIDENCE, "provider_fallback")

        if best.confidence < 0.5:
            for words, category in HEURISTIC_KEYWORDS:
                if any(word in search_text for word in words):
                    return CategorySuggestion(category, HEURISTIC_CONFIDENCE, "amount_heuristic")

        return best

    def suggest(
        self, transaction_name: str | None, merchant_name: str | None = None, limit: int = MAX_SUGGESTIONS
    ) -> list[CategorySuggestion]:
        """Top suggestions, best first, one entry per category."""
        search_text = f"{transaction_name or ''} {merchant_name or ''}".strip().lower()
        candidates: list[CategorySuggestion] = []
        if merchant_name:
            exact = self.merchants.get(_merchant_key(merchant_name))
            if exact:
                candidates.append(
                    CategorySuggestion(
                        exact, EXACT_MERCHANT_CONFIDENCE, "exact_merchant",
                        reason=f'Previously categorized merchant "{merchant_name}"',
                    )
                )
        candidates.extend(self._keyword_matches(search_text))
        candidates.sort(key=lambda s: s.confidence, reverse=True)

        seen: set[str] = set()
        result = []
        for suggestion in candidates:
            if suggestion.category in seen:
                continue
            seen.add(suggestion.category)
            result.append(suggestion)
            if len(result) == limit:
                break
        return result


HistoryLoader = Callable[[UUID], Awaitable[Iterable[tuple[str | None, str | None]]]]


class KeywordIndexRegistry:
    """Per-user ``KeywordIndex`` instances with lazy, lock-guarded warm-up."""

    def __init__(self):
        self._indexes: dict[UUID, KeywordIndex] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: UUID, loader: HistoryLoader | None = None) -> KeywordIndex:
        async with self._lock:
            index = self._indexes.get(user_id)
            if index is None:
                index = KeywordIndex()
                self._indexes[user_id] = index
            if not index.warmed and loader is not None:
                index.warm(await loader(user_id))
            return index

    def peek(self, user_id: UUID) -> KeywordIndex | None:
        return self._indexes.get(user_id)

    def discard(self, user_id: UUID) -> None:
        self._indexes.pop(user_id, None)

    def clear(self) -> None:
        self._indexes.clear()


keyword_indexes = KeywordIndexRegistry()
