"""Savings goal service.

Progress, remaining amount and overdue state are computed on read; only the
saved amount and completion flag are stored.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.rules import INCOME
from moneyapp.core.exceptions import NotFoundError, ValidationError
from moneyapp.models.base import utcnow
from moneyapp.models.savings_goal import SavingsGoal
from moneyapp.repositories.savings_goal import SavingsGoalRepository
from moneyapp.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
INCOME_LOOKBACK_DAYS = 30
SUGGESTED_CONTRIBUTION_RATE = 0.10


@dataclass(frozen=True)
class GoalProgress:
    progress_percentage: float
    remaining_amount: int
    days_remaining: int
    is_overdue: bool


@dataclass
class GoalAnalytics:
    total_goals: int
    completed_goals: int
    active_goals: int
    overdue_goals: int
    total_target_amount: int
    total_current_amount: int
    total_remaining: int
    average_progress: float
    overall_progress: float


@dataclass
class GoalProgressHistory:
    goal_id: UUID
    current_amount: int
    target_amount: int
    progress_percentage: float
    days_since_start: int
    total_days: int
    expected_progress: float
    is_on_track: bool


@dataclass
class ContributionSuggestion:
    total_income: int
    active_goals: int
    potential_contribution: int


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def _progress_pct(goal: SavingsGoal) -> float:
    if goal.target_amount <= 0:
        return 0.0
    return round(goal.current_amount / goal.target_amount * 100, 2)


def compute_progress(goal: SavingsGoal, now: datetime | None = None) -> GoalProgress:
    now = now or utcnow()
    return GoalProgress(
        progress_percentage=_progress_pct(goal),
        remaining_amount=goal.target_amount - goal.current_amount,
        days_remaining=_days_between(now, goal.target_date),
        is_overdue=goal.target_date < now and not goal.is_completed,
    )


def as_deadline(value: date | datetime) -> datetime:
    """Deadlines given as a date mean the end of that day (UTC)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time(23, 59, 59), tzinfo=timezone.utc)


class SavingsGoalService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.goal_repo = SavingsGoalRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def get_goal(self, user_id: UUID, goal_id: UUID) -> SavingsGoal:
        goal = await self.goal_repo.get_for_user(user_id, goal_id)
        if goal is None:
            raise NotFoundError("GOAL_001", details={"goal_id": str(goal_id)})
        return goal

    @staticmethod
    def _require_positive(amount: int) -> None:
        if amount is None or amount <= 0:
            raise ValidationError("GOAL_002", details={"amount": amount})

    async def create_goal(
        self,
        user_id: UUID,
        name: str,
        target_amount: int,
        target_date: date | datetime,
        description: str | None = None,
        category: str | None = None,
    ) -> SavingsGoal:
        self._require_positive(target_amount)
        goal = SavingsGoal(
            user_id=user_id,
            name=name.strip(),
            description=description,
            target_amount=target_amount,
            current_amount=0,
            target_date=as_deadline(target_date),
            category=category,
        )
        goal = await self.goal_repo.create(goal)
        logger.info("Savings goal created", extra={"user_id": str(user_id), "goal_id": str(goal.id)})
        return goal

    async def list_goals(
        self, user_id: UUID, now: datetime | None = None
    ) -> list[tuple[SavingsGoal, GoalProgress]]:
        goals = await self.goal_repo.get_all_by_user(user_id)
        return [(goal, compute_progress(goal, now)) for goal in goals]

    async def update_goal(self, user_id: UUID, goal_id: UUID, data: dict[str, Any]) -> SavingsGoal:
        goal = await self.get_goal(user_id, goal_id)
        updates = {k: v for k, v in data.items() if v is not None}
        if "target_amount" in updates:
            self._require_positive(updates["target_amount"])
            updates["is_completed"] = goal.current_amount >= updates["target_amount"]
        if "target_date" in updates:
            updates["target_date"] = as_deadline(updates["target_date"])
        return await self.goal_repo.update(goal, updates)

    async def add_to_goal(self, user_id: UUID, goal_id: UUID, amount: int) -> SavingsGoal:
        self._require_positive(amount)
        goal = await self.get_goal(user_id, goal_id)
        new_amount = goal.current_amount + amount
        return await self.goal_repo.update(
            goal,
            {
                "current_amount": new_amount,
                "is_completed": new_amount >= goal.target_amount or goal.is_completed,
            },
        )

    async def remove_from_goal(self, user_id: UUID, goal_id: UUID, amount: int) -> SavingsGoal:
        """Withdraw from a goal; the saved amount never drops below zero."""
        self._require_positive(amount)
        goal = await self.get_goal(user_id, goal_id)
        new_amount = max(0, goal.current_amount - amount)
        return await self.goal_repo.update(
            goal,
            {
                "current_amount": new_amount,
                "is_completed": new_amount >= goal.target_amount and new_amount > 0,
            },
        )

    async def delete_goal(self, user_id: UUID, goal_id: UUID) -> None:
        goal = await self.get_goal(user_id, goal_id)
        await self.goal_repo.delete(goal)

    async def get_goal_analytics(self, user_id: UUID, now: datetime | None = None) -> GoalAnalytics:
        now = now or utcnow()
        goals = await self.goal_repo.get_all_by_user(user_id)
        total_target = sum(g.target_amount for g in goals)
        total_current = sum(g.current_amount for g in goals)
        average = (
            sum(g.current_amount / g.target_amount for g in goals if g.target_amount) / len(goals) * 100
            if goals
            else 0.0
        )
        return GoalAnalytics(
            total_goals=len(goals),
            completed_goals=sum(1 for g in goals if g.is_completed),
            active_goals=sum(1 for g in goals if g.is_active and not g.is_completed),
            overdue_goals=sum(1 for g in goals if g.target_date < now and not g.is_completed),
            total_target_amount=total_target,
            total_current_amount=total_current,
            total_remaining=total_target - total_current,
            average_progress=round(average, 2),
            overall_progress=round(total_current / total_target * 100, 2) if total_target else 0.0,
        )

    async def get_progress_history(
        self, user_id: UUID, goal_id: UUID, now: datetime | None = None
    ) -> GoalProgressHistory:
        """Actual vs. expected (linear) progress since the goal was created."""
        now = now or utcnow()
        goal = await self.get_goal(user_id, goal_id)
        days_since_start = _days_between(goal.created_at, now)
        total_days = _days_between(goal.created_at, goal.target_date)
        expected_fraction = days_since_start / total_days if total_days > 0 else 1.0
        return GoalProgressHistory(
            goal_id=goal.id,
            current_amount=goal.current_amount,
            target_amount=goal.target_amount,
            progress_percentage=_progress_pct(goal),
            days_since_start=days_since_start,
            total_days=total_days,
            expected_progress=round(expected_fraction * 100, 2) if total_days > 0 else 0.0,
            is_on_track=goal.current_amount >= expected_fraction * goal.target_amount,
        )

    async def suggest_contribution(
        self, user_id: UUID, today: date | None = None
    ) -> ContributionSuggestion:
        """Suggest putting a share of the last 30 days of income into open goals."""
        today = today or date.today()
        total_income = await self.transaction_repo.sum_income(
            user_id, today - timedelta(days=INCOME_LOOKBACK_DAYS), today, category=INCOME
        )
        open_goals = await self.goal_repo.get_open_by_user(user_id)
        return ContributionSuggestion(
            total_income=total_income,
            active_goals=len(open_goals),
            potential_contribution=round(total_income * SUGGESTED_CONTRIBUTION_RATE),
        )
