"""Budget service: period maths, spending computation and CRUD."""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.rules import is_valid_category, normalize_category
from moneyapp.core.exceptions import ConflictError, NotFoundError, ValidationError
from moneyapp.models.base import utcnow
from moneyapp.models.budget import Budget, BudgetPeriod
from moneyapp.repositories.budget import BudgetRepository
from moneyapp.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)
MIN_TRANSACTIONS_FOR_BUDGET_CATEGORY = 5


@dataclass(frozen=True)
class BudgetSpending:
    spent: int
    remaining: int
    percent_used: float


def _last_day_of_month(year: int, month: int) -> date:
    # month may run past 12 for quarterly windows
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, calendar.monthrange(year, month)[1])


def create_budget_period(
    period: BudgetPeriod, start_date: datetime | None = None
) -> tuple[datetime, datetime]:
    """Derive the [start, end] window of a budget.

    weekly -> start + 6 days; monthly -> last day of the start month;
    quarterly -> last day of the third month counting the start month;
    yearly -> December 31 of the start year. End is always 23:59:59.999.
    """
    start = start_date or utcnow()
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)

    if period == BudgetPeriod.WEEKLY:
        end_day = start.date() + timedelta(days=6)
    elif period == BudgetPeriod.MONTHLY:
        end_day = _last_day_of_month(start.year, start.month)
    elif period == BudgetPeriod.QUARTERLY:
        end_day = _last_day_of_month(start.year, start.month + 2)
    elif period == BudgetPeriod.YEARLY:
        end_day = date(start.year, 12, 31)
    else:
        raise ValueError(f"Unknown budget period: {period}")

    return start, datetime.combine(end_day, END_OF_DAY, tzinfo=start.tzinfo)


def as_start_datetime(value: date | datetime) -> datetime:
    """Budgets start at midnight UTC when only a date is given."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def is_window_active(budget: Budget, now: datetime) -> bool:
    effective_end = budget.end_date or now
    return budget.start_date <= now <= effective_end


class BudgetService:
    """Service layer for budgets.

    Spending is always computed on read from categorized transactions.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.budget_repo = BudgetRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def compute_spending(self, budget: Budget, now: datetime | None = None) -> BudgetSpending:
        """Spent/remaining/percent-used for a budget at ``now``.

        Outside the budget window nothing is queried and the full amount is
        reported as remaining.
        """
        now = now or utcnow()
        if not is_window_active(budget, now):
            return BudgetSpending(spent=0, remaining=budget.amount, percent_used=0.0)

        effective_end = budget.end_date or now
        spent = await self.transaction_repo.sum_expenses(
            budget.user_id, budget.category, budget.start_date.date(), effective_end.date()
        )
        percent_used = (spent / budget.amount) * 100 if budget.amount > 0 else 0.0
        return BudgetSpending(
            spent=spent, remaining=budget.amount - spent, percent_used=round(percent_used, 2)
        )

    async def list_budgets(
        self, user_id: UUID, now: datetime | None = None
    ) -> list[tuple[Budget, BudgetSpending]]:
        budgets = await self.budget_repo.get_active_by_user(user_id)
        return [(budget, await self.compute_spending(budget, now)) for budget in budgets]

    async def get_budget(self, user_id: UUID, budget_id: UUID) -> Budget:
        budget = await self.budget_repo.get_for_user(user_id, budget_id)
        if budget is None:
            raise NotFoundError("BUDGET_003", details={"budget_id": str(budget_id)})
        return budget

    async def _check_overlap(
        self,
        user_id: UUID,
        category: str,
        start: datetime,
        end: datetime | None,
        exclude_id: UUID | None = None,
    ) -> None:
        clash = await self.budget_repo.find_overlapping(user_id, category, start, end, exclude_id)
        if clash is not None:
            raise ConflictError(
                "BUDGET_002",
                details={"category": category, "conflicting_budget_id": str(clash.id)},
            )

    @staticmethod
    def _validate(category: str, amount: int) -> str:
        if amount is None or amount <= 0:
            raise ValidationError("BUDGET_001", details={"amount": amount})
        category = normalize_category(category)
        if not is_valid_category(category):
            raise ValidationError("VAL_002", details={"category": category})
        return category

    async def create_budget(
        self,
        user_id: UUID,
        name: str,
        category: str,
        amount: int,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        start_date: date | datetime | None = None,
    ) -> Budget:
        """Create a budget; the end date is derived from period and start.

        Raises:
            ValidationError: Non-positive amount or invalid category
            ConflictError: Another active budget for the category overlaps
        """
        category = self._validate(category, amount)
        start, end = create_budget_period(
            period, as_start_datetime(start_date) if start_date else None
        )
        await self._check_overlap(user_id, category, start, end)

        budget = Budget(
            user_id=user_id,
            name=name.strip() or category,
            category=category,
            amount=amount,
            period=period,
            start_date=start,
            end_date=end,
            is_active=True,
        )
        budget = await self.budget_repo.create(budget)
        logger.info(
            "Budget created",
            extra={"user_id": str(user_id), "budget_id": str(budget.id), "period": period.value},
        )
        return budget

    async def update_budget(self, user_id: UUID, budget_id: UUID, data: dict[str, Any]) -> Budget:
        """Apply a partial update, re-deriving the window when period or start change."""
        budget = await self.get_budget(user_id, budget_id)

        category = data.get("category", budget.category)
        amount = data.get("amount", budget.amount)
        category = self._validate(category, amount)
        period = data.get("period") or budget.period
        is_active = data.get("is_active", budget.is_active)

        start, end = budget.start_date, budget.end_date
        if "start_date" in data or "period" in data:
            new_start = data.get("start_date")
            start, end = create_budget_period(
                period, as_start_datetime(new_start) if new_start else budget.start_date
            )

        if is_active:
            await self._check_overlap(user_id, category, start, end, exclude_id=budget.id)

        updates = {
            "category": category,
            "amount": amount,
            "period": period,
            "start_date": start,
            "end_date": end,
            "is_active": is_active,
        }
        if data.get("name"):
            updates["name"] = data["name"].strip()
        return await self.budget_repo.update(budget, updates)

    async def delete_budget(self, user_id: UUID, budget_id: UUID) -> None:
        budget = await self.get_budget(user_id, budget_id)
        await self.budget_repo.delete(budget)

    async def get_available_categories(self, user_id: UUID) -> list[str]:
        """Expense categories with enough history to budget against."""
        return await self.transaction_repo.get_expense_categories(
            user_id, MIN_TRANSACTIONS_FOR_BUDGET_CATEGORY
        )

    async def sync_user_budgets(
        self, user_id: UUID, now: datetime | None = None
    ) -> dict[UUID, BudgetSpending]:
        """Recompute spending for every active budget of a user.

        A failure on one budget is logged and does not stop the others.
        """
        results: dict[UUID, BudgetSpending] = {}
        budgets = await self.budget_repo.get_active_by_user(user_id)
        for budget in budgets:
            try:
                results[budget.id] = await self.compute_spending(budget, now)
            except Exception as exc:
                logger.error(
                    "Failed to sync budget",
                    extra={
                        "user_id": str(user_id),
                        "budget_id": str(budget.id),
                        "error_type": type(exc).__name__,
                    },
                )
        logger.info(
            "Budgets synced",
            extra={"user_id": str(user_id), "budgets": len(budgets), "computed": len(results)},
        )
        return results
