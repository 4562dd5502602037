"""Display-category resolution for synced transactions.

One canonical resolver is used by every caller (sync, re-categorization,
suggestions). Resolution is a pure function of the transaction attributes and
an explicit, per-user ``CategoryRuleSet``; there is no module-level mutable
state.

Resolution order (first match wins):

1. user override rules (priority desc, then most recently updated)
2. income short-circuit for inflows (negative amounts)
3. merchant/keyword pattern table
4. provider (primary, secondary) pair rules
5. provider primary-category map
6. provider secondary-category map, for unknown primaries
7. raw primary provider category, else "Other"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Protocol, Sequence

from moneyapp.categorization.rules import (
    INCOME,
    INCOME_KEYWORDS,
    INCOME_PROVIDER_TOKENS,
    MERCHANT_PATTERNS,
    OTHER,
    PAIR_PRIMARY_DEFAULTS,
    PROVIDER_PAIR_RULES,
    PROVIDER_PRIMARY_MAP,
    PROVIDER_SECONDARY_MAP,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RuleLike(Protocol):
    """Anything shaped like a CategoryRule row."""

    pattern: str
    is_pattern: bool
    category: str
    priority: int


@dataclass(frozen=True)
class CompiledRule:
    pattern: str
    is_pattern: bool
    category: str
    priority: int
    regex: re.Pattern[str] | None = None

    def matches(self, search_text: str) -> bool:
        if self.regex is not None:
            return self.regex.search(search_text) is not None
        return self.pattern.lower() in search_text


class CategoryRuleSet:
    """Ordered, pre-compiled user override rules.

    Regular expressions are untrusted user input: invalid ones are logged and
    dropped at compile time so a single bad rule never breaks a sync batch.
    The set is immutable once built; build a new one after rules change.
    """

    def __init__(self, rules: Iterable[RuleLike] = ()):
        ordered = sorted(
            rules,
            key=lambda r: (
                r.priority or 0,
                getattr(r, "updated_at", None) or getattr(r, "created_at", None) or _EPOCH,
            ),
            reverse=True,
        )
        compiled: list[CompiledRule] = []
        skipped = 0
        for rule in ordered:
            if not rule.pattern:
                continue
            regex = None
            if rule.is_pattern:
                try:
                    regex = re.compile(rule.pattern, re.IGNORECASE)
                except re.error:
                    skipped += 1
                    logger.warning(
                        "Skipping invalid category rule pattern",
                        extra={"rule_id": str(getattr(rule, "id", "")), "category": rule.category},
                    )
                    continue
            compiled.append(
                CompiledRule(
                    pattern=rule.pattern,
                    is_pattern=rule.is_pattern,
                    category=rule.category,
                    priority=rule.priority or 0,
                    regex=regex,
                )
            )
        self._rules: tuple[CompiledRule, ...] = tuple(compiled)
        self.skipped = skipped

    @classmethod
    def empty(cls) -> "CategoryRuleSet":
        return cls(())

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)

    def match(self, search_text: str) -> str | None:
        for rule in self._rules:
            if rule.matches(search_text):
                return rule.category
        return None


def build_search_text(merchant_name: str | None, transaction_name: str | None) -> str:
    """Lower-cased "merchant name" text used by every text matcher."""
    return f"{merchant_name or ''} {transaction_name or ''}".strip().lower()


def is_income(
    provider_categories: Sequence[str], search_text: str, amount: float | int
) -> bool:
    """Negative amounts are inflows; only those can short-circuit to Income."""
    if amount >= 0:
        return False
    if any(token in INCOME_PROVIDER_TOKENS for token in provider_categories):
        return True
    return INCOME_KEYWORDS.search(search_text) is not None


def match_merchant_pattern(search_text: str) -> str | None:
    for pattern, category in MERCHANT_PATTERNS:
        if pattern.search(search_text):
            return category
    return None


def map_provider_pair(provider_categories: Sequence[str]) -> str | None:
    if len(provider_categories) < 2:
        return None
    primary, secondary = provider_categories[0], provider_categories[1]
    if (primary, secondary) in PROVIDER_PAIR_RULES:
        return PROVIDER_PAIR_RULES[(primary, secondary)]
    return PAIR_PRIMARY_DEFAULTS.get(primary)


def map_provider_primary(provider_categories: Sequence[str]) -> str | None:
    if not provider_categories:
        return None
    return PROVIDER_PRIMARY_MAP.get(provider_categories[0])


def map_provider_secondary(provider_categories: Sequence[str]) -> str | None:
    if len(provider_categories) < 2 or provider_categories[1] == provider_categories[0]:
        return None
    return PROVIDER_SECONDARY_MAP.get(provider_categories[1])


def resolve(
    provider_categories: Sequence[str] | None,
    merchant_name: str | None,
    transaction_name: str | None,
    amount: float | int,
    user_overrides: CategoryRuleSet | Iterable[RuleLike] | None = None,
) -> str:
    """Resolve the display category for one transaction.

    Args:
        provider_categories: Provider category path, most general first.
        merchant_name: Cleaned merchant name, when the provider has one.
        transaction_name: Raw transaction description.
        amount: Signed amount (negative = inflow).
        user_overrides: The user's rule set (or raw rules to compile).

    Returns:
        Display category; never empty.
    """
    categories = [c for c in (provider_categories or []) if c]
    search_text = build_search_text(merchant_name, transaction_name)

    if user_overrides is not None:
        rule_set = (
            user_overrides
            if isinstance(user_overrides, CategoryRuleSet)
            else CategoryRuleSet(user_overrides)
        )
        override = rule_set.match(search_text) if search_text else None
        if override:
            return override

    if is_income(categories, search_text, amount):
        return INCOME

    if search_text:
        matched = match_merchant_pattern(search_text)
        if matched:
            return matched

    return (
        map_provider_pair(categories)
        or map_provider_primary(categories)
        or map_provider_secondary(categories)
        or (categories[0] if categories else OTHER)
    )
