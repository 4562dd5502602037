"""Learning store: per-user rules learned from category corrections."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.resolver import CategoryRuleSet
from moneyapp.categorization.rules import is_valid_category, normalize_category
from moneyapp.categorization.suggestions import (
    KeywordIndex,
    KeywordIndexRegistry,
    extract_keywords,
    keyword_indexes,
)
from moneyapp.core.exceptions import ValidationError
from moneyapp.models.category_rule import CategoryRule
from moneyapp.repositories.category_rule import CategoryRuleRepository
from moneyapp.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

# Merchant rules outrank keyword rules learned from the same correction.
MERCHANT_RULE_PRIORITY = 10
KEYWORD_RULE_PRIORITY = 1


class LearningStore:
    """Persists user corrections as CategoryRules and keeps the user's
    in-memory ``KeywordIndex`` in step.

    ``learn`` flushes but does not commit, so a correction and the rules it
    produces land in the same database transaction.
    """

    def __init__(self, db: AsyncSession, registry: KeywordIndexRegistry = keyword_indexes):
        self.db = db
        self.registry = registry
        self.rule_repo = CategoryRuleRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def learn(
        self,
        user_id: UUID,
        merchant_name: str | None,
        transaction_name: str | None,
        corrected_category: str,
    ) -> list[CategoryRule]:
        category = normalize_category(corrected_category)
        if not is_valid_category(category):
            raise ValidationError("VAL_002", details={"category": corrected_category})

        rules = []
        merchant = (merchant_name or "").strip()
        if merchant:
            rules.append(
                await self.rule_repo.upsert(
                    user_id, merchant, False, category, MERCHANT_RULE_PRIORITY
                )
            )
        for word in extract_keywords(transaction_name):
            rules.append(
                await self.rule_repo.upsert(user_id, word, False, category, KEYWORD_RULE_PRIORITY)
            )

        index = self.registry.peek(user_id)
        if index is not None:
            index.learn(merchant or None, transaction_name, category)

        logger.info(
            "Learned from category correction",
            extra={"user_id": str(user_id), "rules": len(rules), "category": category},
        )
        return rules

    async def load_rule_set(self, user_id: UUID) -> CategoryRuleSet:
        return CategoryRuleSet(await self.rule_repo.get_all_by_user(user_id))

    async def _history(self, user_id: UUID):
        history = await self.transaction_repo.get_categorized_history(user_id)
        # Corrections are replayed last so they outrank older history.
        rules = await self.rule_repo.get_all_by_user(user_id)
        history.extend(
            (rule.pattern, rule.category)
            for rule in reversed(rules)
            if not rule.is_pattern and rule.priority >= MERCHANT_RULE_PRIORITY
        )
        return history

    async def get_index(self, user_id: UUID) -> KeywordIndex:
        """The user's keyword index, warmed from history on first use."""
        index = await self.registry.get(user_id, loader=self._history)
        return index
