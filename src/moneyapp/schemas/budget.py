"""Budget request/response schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from moneyapp.models.budget import BudgetPeriod
from moneyapp.schemas.common import MoneyMeta


class BudgetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., description="Budget amount (minor units, > 0)")
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date | None = Field(None, description="Defaults to now")


class BudgetUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(None, min_length=1, max_length=100)
    amount: int | None = None
    period: BudgetPeriod | None = None
    start_date: date | None = None
    is_active: bool | None = None


class BudgetResponse(BaseModel):
    """Budget with spending computed at request time (minor units)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    amount: int
    period: BudgetPeriod
    start_date: datetime
    end_date: datetime | None
    is_active: bool
    spent: int = 0
    remaining: int = 0
    percent_used: float = 0.0


class BudgetListResult(BaseModel):
    budgets: list[BudgetResponse]
    money: MoneyMeta


class BudgetCategoriesResult(BaseModel):
    categories: list[str]
