"""Account repository."""
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.account import Account
from moneyapp.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for Account model keyed by provider account id."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Account)

    async def get_by_external_ids(self, external_ids: list[str]) -> dict[str, Account]:
        """Map provider account id -> stored account for the given ids."""
        if not external_ids:
            return {}
        result = await self.db.execute(
            select(Account).where(Account.external_account_id.in_(external_ids))
        )
        return {account.external_account_id: account for account in result.scalars().all()}

    async def get_external_index(self, user_id: UUID) -> dict[str, UUID]:
        """Map provider account id -> local id for all of a user's accounts."""
        result = await self.db.execute(
            select(Account.external_account_id, Account.id).where(Account.user_id == user_id)
        )
        return {row.external_account_id: row.id for row in result}

    async def get_all_by_user(self, user_id: UUID, active_only: bool = False) -> list[Account]:
        query = select(Account).where(Account.user_id == user_id)
        if active_only:
            query = query.where(Account.is_active == True)
        result = await self.db.execute(query.order_by(Account.name))
        return list(result.scalars().all())

    async def delete_by_user(self, user_id: UUID) -> int:
        """Hard-delete every account of a user (no commit)."""
        result = await self.db.execute(delete(Account).where(Account.user_id == user_id))
        return result.rowcount or 0
