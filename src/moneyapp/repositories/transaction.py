"""Transaction repository with filtering and aggregation queries."""
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import Select, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.models.transaction import Transaction
from moneyapp.repositories.base import BaseRepository


@dataclass
class TransactionFilters:
    account_id: UUID | None = None
    category: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None
    pending: bool | None = None


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model with filtering and analytics queries.

    Expense = positive amount, income = negative amount.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    def _filtered(self, user_id: UUID, filters: TransactionFilters | None) -> Select:
        query = select(Transaction).where(Transaction.user_id == user_id)
        if filters is None:
            return query
        if filters.account_id:
            query = query.where(Transaction.account_id == filters.account_id)
        if filters.category:
            query = query.where(Transaction.display_category == filters.category)
        if filters.start_date:
            query = query.where(Transaction.date >= filters.start_date)
        if filters.end_date:
            query = query.where(Transaction.date <= filters.end_date)
        if filters.pending is not None:
            query = query.where(Transaction.pending == filters.pending)
        if filters.search:
            term = f"%{filters.search}%"
            query = query.where(
                or_(Transaction.name.ilike(term), Transaction.merchant_name.ilike(term))
            )
        return query

    async def get_by_external_ids(self, external_ids: list[str]) -> dict[str, Transaction]:
        """Map provider transaction id -> stored transaction for the given ids."""
        if not external_ids:
            return {}
        found: dict[str, Transaction] = {}
        # Keep IN lists bounded for large fetch windows.
        for i in range(0, len(external_ids), 500):
            chunk = external_ids[i : i + 500]
            result = await self.db.execute(
                select(Transaction).where(Transaction.external_transaction_id.in_(chunk))
            )
            for txn in result.scalars().all():
                found[txn.external_transaction_id] = txn
        return found

    async def list_filtered(
        self,
        user_id: UUID,
        filters: TransactionFilters | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Transaction], int]:
        """Page of matching transactions (newest first) plus the total count."""
        query = self._filtered(user_id, filters)
        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)

    async def summarize(
        self, user_id: UUID, filters: TransactionFilters | None = None
    ) -> tuple[int, int, int]:
        """(income, expenses, count) over matching transactions, both sums positive."""
        sub = self._filtered(user_id, filters).subquery()
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(case((sub.c.amount < 0, -sub.c.amount), else_=0)), 0),
                func.coalesce(func.sum(case((sub.c.amount > 0, sub.c.amount), else_=0)), 0),
                func.count(),
            )
        )
        income, expenses, count = result.one()
        return int(income), int(expenses), int(count)

    async def count_by_user(self, user_id: UUID) -> int:
        total = await self.db.scalar(
            select(func.count(Transaction.id)).where(Transaction.user_id == user_id)
        )
        return int(total or 0)

    async def get_by_date_range(
        self, user_id: UUID, start_date: date, end_date: date
    ) -> list[Transaction]:
        """Get transactions within a date range (inclusive), oldest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.date >= start_date,
                Transaction.date <= end_date,
            )
            .order_by(Transaction.date)
        )
        return list(result.scalars().all())

    async def sum_expenses(
        self, user_id: UUID, category: str, start_date: date, end_date: date
    ) -> int:
        """Total expense amount in one category over [start_date, end_date]."""
        total = await self.db.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.display_category == category,
                Transaction.amount > 0,
                Transaction.date >= start_date,
                Transaction.date <= end_date,
            )
        )
        return int(total or 0)

    async def sum_income(
        self, user_id: UUID, start_date: date, end_date: date, category: str | None = None
    ) -> int:
        """Total inflow (as a positive number) over [start_date, end_date]."""
        query = select(func.coalesce(func.sum(-Transaction.amount), 0)).where(
            Transaction.user_id == user_id,
            Transaction.amount < 0,
            Transaction.date >= start_date,
            Transaction.date <= end_date,
        )
        if category:
            query = query.where(Transaction.display_category == category)
        total = await self.db.scalar(query)
        return int(total or 0)

    async def spending_by_category(
        self, user_id: UUID, start_date: date | None = None, end_date: date | None = None
    ) -> list[tuple[str, int, int]]:
        """(category, total, count) of expenses, largest total first."""
        query = select(
            Transaction.display_category,
            func.sum(Transaction.amount).label("total"),
            func.count(Transaction.id).label("count"),
        ).where(Transaction.user_id == user_id, Transaction.amount > 0)
        if start_date:
            query = query.where(Transaction.date >= start_date)
        if end_date:
            query = query.where(Transaction.date <= end_date)
        result = await self.db.execute(
            query.group_by(Transaction.display_category).order_by(func.sum(Transaction.amount).desc())
        )
        return [(row.display_category or "Other", int(row.total), int(row.count)) for row in result]

    async def get_expense_categories(self, user_id: UUID, min_count: int = 5) -> list[str]:
        """Expense categories with at least ``min_count`` transactions."""
        result = await self.db.execute(
            select(Transaction.display_category)
            .where(
                Transaction.user_id == user_id,
                Transaction.amount > 0,
                Transaction.display_category.is_not(None),
            )
            .group_by(Transaction.display_category)
            .having(func.count(Transaction.id) >= min_count)
            .order_by(func.count(Transaction.id).desc(), Transaction.display_category)
        )
        return list(result.scalars().all())

    async def get_categorized_history(self, user_id: UUID) -> list[tuple[str | None, str | None]]:
        """(merchant_name, display_category) pairs used to warm the keyword index."""
        result = await self.db.execute(
            select(Transaction.merchant_name, Transaction.display_category)
            .where(
                Transaction.user_id == user_id,
                Transaction.merchant_name.is_not(None),
                Transaction.display_category.is_not(None),
            )
            .order_by(Transaction.date)
        )
        return [(row.merchant_name, row.display_category) for row in result]

    async def get_all_by_user(self, user_id: UUID) -> list[Transaction]:
        result = await self.db.execute(select(Transaction).where(Transaction.user_id == user_id))
        return list(result.scalars().all())

    async def delete_by_user(self, user_id: UUID) -> int:
        """Hard-delete every transaction of a user (no commit)."""
        result = await self.db.execute(delete(Transaction).where(Transaction.user_id == user_id))
        return result.rowcount or 0
