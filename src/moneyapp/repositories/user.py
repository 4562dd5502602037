"""User repository: lookups and sync-state queries used by the scheduler."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.user import SyncStatus, User
from moneyapp.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_item_id(self, item_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.provider_item_id == item_id))
        return result.scalar_one_or_none()

    async def get_sync_status(self, user_id: UUID) -> SyncStatus | None:
        result = await self.db.execute(select(User.sync_status).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_due_for_full_sweep(self, stale_before: datetime) -> list[UUID]:
        """Connected users not mid-sync or expired, never synced or stale."""
        result = await self.db.execute(
            select(User.id)
            .where(
                User.is_active == True,
                User.provider_item_id.is_not(None),
                User.provider_access_token.is_not(None),
                User.sync_status.not_in([SyncStatus.SYNCING, SyncStatus.TOKEN_EXPIRED]),
                or_(User.last_sync_at.is_(None), User.last_sync_at < stale_before),
            )
            .order_by(User.last_sync_at.is_not(None), User.last_sync_at)
        )
        return list(result.scalars().all())

    async def get_due_for_hourly_sweep(
        self, synced_before: datetime, active_since: datetime
    ) -> list[UUID]:
        """Recently active, previously synced users whose data is getting old."""
        result = await self.db.execute(
            select(User.id)
            .where(
                User.is_active == True,
                User.provider_item_id.is_not(None),
                User.provider_access_token.is_not(None),
                User.sync_status.not_in([SyncStatus.SYNCING, SyncStatus.TOKEN_EXPIRED]),
                User.last_sync_at.is_not(None),
                User.last_sync_at < synced_before,
                User.updated_at >= active_since,
            )
            .order_by(User.last_sync_at)
        )
        return list(result.scalars().all())
