"""Category correction, suggestions and re-categorization."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.resolver import resolve
from moneyapp.categorization.rules import is_valid_category, normalize_category
from moneyapp.categorization.suggestions import (
    CategorySuggestion,
    KeywordIndexRegistry,
    keyword_indexes,
)
from moneyapp.core.exceptions import NotFoundError, ValidationError
from moneyapp.models.transaction import Transaction
from moneyapp.repositories.transaction import TransactionRepository
from moneyapp.services.learning import LearningStore

logger = logging.getLogger(__name__)


class CategorizationService:
    def __init__(self, db: AsyncSession, registry: KeywordIndexRegistry = keyword_indexes):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.learning = LearningStore(db, registry)

    async def _get_transaction(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        txn = await self.transaction_repo.get_for_user(user_id, transaction_id)
        if txn is None:
            raise NotFoundError("TXN_001", details={"transaction_id": str(transaction_id)})
        return txn

    async def correct_category(
        self, user_id: UUID, transaction_id: UUID, category: str
    ) -> Transaction:
        """Apply a user's category correction and learn from it.

        Raises:
            ValidationError: Empty or over-long category name
            NotFoundError: Transaction missing or owned by another user
        """
        category = normalize_category(category)
        if not is_valid_category(category):
            raise ValidationError("VAL_002", details={"category": category})

        txn = await self._get_transaction(user_id, transaction_id)
        previous = txn.display_category
        txn.display_category = category
        await self.learning.learn(user_id, txn.merchant_name, txn.name, category)
        await self.db.commit()
        await self.db.refresh(txn)

        logger.info(
            "Transaction category corrected",
            extra={
                "user_id": str(user_id),
                "transaction_id": str(transaction_id),
                "previous_category": previous,
                "category": category,
            },
        )
        return txn

    async def get_suggestions(
        self, user_id: UUID, transaction_id: UUID
    ) -> tuple[Transaction, CategorySuggestion, list[CategorySuggestion]]:
        """Best guess plus the top suggestions for one transaction."""
        txn = await self._get_transaction(user_id, transaction_id)
        index = await self.learning.get_index(user_id)
        best = index.categorize(txn.name, txn.merchant_name, txn.provider_categories)
        return txn, best, index.suggest(txn.name, txn.merchant_name)

    async def update_notes(self, user_id: UUID, transaction_id: UUID, notes: str | None) -> Transaction:
        txn = await self._get_transaction(user_id, transaction_id)
        txn.notes = notes.strip() if notes and notes.strip() else None
        await self.db.commit()
        await self.db.refresh(txn)
        return txn

    async def recategorize(self, user_id: UUID) -> dict[str, int]:
        """Re-run the resolver over all of a user's transactions.

        Only changed categories are written; the result counts them.
        """
        rule_set = await self.learning.load_rule_set(user_id)
        transactions = await self.transaction_repo.get_all_by_user(user_id)
        updated = 0
        for txn in transactions:
            category = resolve(
                txn.provider_categories, txn.merchant_name, txn.name, txn.amount, rule_set
            )
            if category != txn.display_category:
                txn.display_category = category
                updated += 1
        await self.db.commit()

        logger.info(
            "Transactions recategorized",
            extra={"user_id": str(user_id), "total": len(transactions), "updated": updated},
        )
        return {"total": len(transactions), "updated": updated}
