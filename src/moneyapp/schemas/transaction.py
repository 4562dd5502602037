"""Transaction request/response schemas."""

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from moneyapp.schemas.common import MoneyMeta, PaginationMeta


class TransactionResponse(BaseModel):
    """Transaction details.

    ``amount`` is signed minor units: negative = income, positive = expense.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    name: str
    merchant_name: str | None
    amount: int
    date: dt.date
    authorized_date: dt.date | None
    provider_categories: list[str]
    display_category: str | None
    detailed_category: str | None
    pending: bool
    city: str | None
    region: str | None
    country: str | None
    notes: str | None
    created_at: dt.datetime


class TransactionSummary(BaseModel):
    """Totals over the filtered set (minor units, both positive)."""

    total_income: int
    total_expenses: int
    net: int
    count: int


class TransactionListResult(BaseModel):
    transactions: list[TransactionResponse]
    pagination: PaginationMeta
    summary: TransactionSummary
    money: MoneyMeta


class CategorySpending(BaseModel):
    category: str
    total: int = Field(description="Total spent (minor units)")
    count: int
    percentage: float = Field(description="Share of total spending (0-100)")


class CategorySpendingResult(BaseModel):
    categories: list[CategorySpending]
    total: int
    money: MoneyMeta


class MonthlyTrend(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str = Field(description="YYYY-MM")
    income: int
    expenses: int
    net: int


class MonthlyTrendResult(BaseModel):
    trends: list[MonthlyTrend]
    money: MoneyMeta


class CategoryUpdateRequest(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)


class NotesUpdateRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class CategorySuggestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    confidence: float
    method: str
    reason: str = ""


class SuggestionsResult(BaseModel):
    transaction_id: UUID
    current_category: str | None
    best: CategorySuggestionResponse
    suggestions: list[CategorySuggestionResponse]


class RecategorizeResult(BaseModel):
    total: int
    updated: int
