"""Category rule repository (the persisted half of the learning store)."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.category_rule import CategoryRule
from moneyapp.repositories.base import BaseRepository


class CategoryRuleRepository(BaseRepository[CategoryRule]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, CategoryRule)

    async def get_all_by_user(self, user_id: UUID) -> list[CategoryRule]:
        """A user's rules, highest priority then most recently updated first."""
        result = await self.db.execute(
            select(CategoryRule)
            .where(CategoryRule.user_id == user_id)
            .order_by(CategoryRule.priority.desc(), CategoryRule.updated_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_key(self, user_id: UUID, pattern: str, is_pattern: bool) -> CategoryRule | None:
        result = await self.db.execute(
            select(CategoryRule).where(
                CategoryRule.user_id == user_id,
                CategoryRule.pattern == pattern,
                CategoryRule.is_pattern == is_pattern,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self, user_id: UUID, pattern: str, is_pattern: bool, category: str, priority: int
    ) -> CategoryRule:
        """Insert or overwrite the rule for (user, pattern, is_pattern). No commit."""
        rule = await self.get_by_key(user_id, pattern, is_pattern)
        if rule is None:
            rule = CategoryRule(
                user_id=user_id,
                pattern=pattern,
                is_pattern=is_pattern,
                category=category,
                priority=priority,
            )
            self.db.add(rule)
        else:
            rule.category = category
            rule.priority = max(rule.priority, priority)
        await self.db.flush()
        return rule
