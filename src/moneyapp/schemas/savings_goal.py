"""Savings goal schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from moneyapp.schemas.common import MoneyMeta


class SavingsGoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_amount: int = Field(..., description="Target (minor units, > 0)")
    target_date: date
    category: str | None = Field(None, max_length=100)


class SavingsGoalUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    target_amount: int | None = None
    target_date: date | None = None
    category: str | None = Field(None, max_length=100)
    is_active: bool | None = None


class AmountRequest(BaseModel):
    amount: int = Field(..., description="Amount (minor units, > 0)")


class SavingsGoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    target_amount: int
    current_amount: int
    target_date: datetime
    category: str | None
    is_active: bool
    is_completed: bool
    created_at: datetime
    progress_percentage: float | None = None
    remaining_amount: int | None = None
    days_remaining: int | None = None
    is_overdue: bool | None = None


class SavingsGoalListResult(BaseModel):
    goals: list[SavingsGoalResponse]
    money: MoneyMeta


class GoalAnalyticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_goals: int
    completed_goals: int
    active_goals: int
    overdue_goals: int
    total_target_amount: int
    total_current_amount: int
    total_remaining: int
    average_progress: float
    overall_progress: float


class GoalProgressHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    goal_id: UUID
    current_amount: int
    target_amount: int
    progress_percentage: float
    days_since_start: int
    total_days: int
    expected_progress: float
    is_on_track: bool


class ContributionSuggestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_income: int
    active_goals: int
    potential_contribution: int
