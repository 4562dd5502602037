"""Budget repository."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.budget import Budget
from moneyapp.repositories.base import BaseRepository


class BudgetRepository(BaseRepository[Budget]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Budget)

    async def get_active_by_user(self, user_id: UUID) -> list[Budget]:
        result = await self.db.execute(
            select(Budget)
            .where(Budget.user_id == user_id, Budget.is_active == True)
            .order_by(Budget.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_overlapping(
        self,
        user_id: UUID,
        category: str,
        start: datetime,
        end: datetime | None,
        exclude_id: UUID | None = None,
    ) -> Budget | None:
        """First active budget for the category whose window intersects [start, end].

        A missing end date is treated as open-ended on either side.
        """
        query = select(Budget).where(
            Budget.user_id == user_id,
            Budget.category == category,
            Budget.is_active == True,
            or_(Budget.end_date.is_(None), Budget.end_date >= start),
        )
        if end is not None:
            query = query.where(Budget.start_date <= end)
        if exclude_id is not None:
            query = query.where(Budget.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()
