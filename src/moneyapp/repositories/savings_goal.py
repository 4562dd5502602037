"""Savings goal repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.savings_goal import SavingsGoal
from moneyapp.repositories.base import BaseRepository


class SavingsGoalRepository(BaseRepository[SavingsGoal]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, SavingsGoal)

    async def get_all_by_user(self, user_id: UUID) -> list[SavingsGoal]:
        """All goals of a user, newest first."""
        result = await self.db.execute(
            select(SavingsGoal)
            .where(SavingsGoal.user_id == user_id)
            .order_by(SavingsGoal.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_open_by_user(self, user_id: UUID) -> list[SavingsGoal]:
        """Active goals that still need money."""
        result = await self.db.execute(
            select(SavingsGoal)
            .where(
                SavingsGoal.user_id == user_id,
                SavingsGoal.is_active == True,
                SavingsGoal.is_completed == False,
            )
            .order_by(SavingsGoal.target_date)
        )
        return list(result.scalars().all())
