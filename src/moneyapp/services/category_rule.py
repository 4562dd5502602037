"""Explicit user category rules (overrides)."""

import logging
import re
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.rules import is_valid_category, normalize_category
from moneyapp.core.exceptions import NotFoundError, ValidationError
from moneyapp.models.category_rule import CategoryRule
from moneyapp.repositories.category_rule import CategoryRuleRepository

logger = logging.getLogger(__name__)


class CategoryRuleService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.rule_repo = CategoryRuleRepository(db)

    async def list_rules(self, user_id: UUID) -> list[CategoryRule]:
        return await self.rule_repo.get_all_by_user(user_id)

    async def create_rule(
        self,
        user_id: UUID,
        pattern: str,
        category: str,
        is_pattern: bool = False,
        priority: int = 5,
    ) -> CategoryRule:
        """Create or overwrite a rule for the same pattern.

        Regular expressions are user input: they are compiled here and
        rejected with RULE_001 rather than stored.
        """
        pattern = pattern.strip()
        if not pattern:
            raise ValidationError("VAL_001", details={"field": "pattern"})
        if is_pattern:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                raise ValidationError("RULE_001", details={"pattern": pattern, "reason": str(exc)})
        category = normalize_category(category)
        if not is_valid_category(category):
            raise ValidationError("VAL_002", details={"category": category})

        rule = await self.rule_repo.upsert(user_id, pattern, is_pattern, category, priority)
        await self.db.commit()
        await self.db.refresh(rule)
        logger.info(
            "Category rule saved",
            extra={"user_id": str(user_id), "rule_id": str(rule.id), "is_pattern": is_pattern},
        )
        return rule

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> None:
        rule = await self.rule_repo.get_for_user(user_id, rule_id)
        if rule is None:
            raise NotFoundError("RULE_002", details={"rule_id": str(rule_id)})
        await self.rule_repo.delete(rule)
