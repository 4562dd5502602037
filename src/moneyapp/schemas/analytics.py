"""Analytics response schemas (amounts in minor units)."""

from datetime import date

from pydantic import BaseModel, ConfigDict

from moneyapp.schemas.common import MoneyMeta


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MonthlyCategoryTotalsResponse(_FromAttributes):
    month: str
    categories: dict[str, int]
    total: int


class SpendingInsightResponse(_FromAttributes):
    category: str
    previous_amount: int
    current_amount: int
    change: int
    percent_change: float
    type: str
    severity: str


class MerchantSummaryResponse(_FromAttributes):
    name: str
    total_spent: int
    transaction_count: int
    average_spent: int
    categories: list[str]
    last_transaction: date


class DayOfWeekSpendingResponse(_FromAttributes):
    day: str
    total_spent: int
    transaction_count: int
    average_spent: int


class MonthSummaryResponse(_FromAttributes):
    month: int
    income: int
    expenses: int
    net_income: int
    top_category: str


class CategoryForecastResponse(_FromAttributes):
    category: str
    predicted_amount: int
    confidence: float


class SpendingForecastResponse(_FromAttributes):
    forecast: list[CategoryForecastResponse]
    total_predicted: int
    data_quality: float
    months_of_data: int


class TrendsResult(BaseModel):
    trends: list[MonthlyCategoryTotalsResponse]
    money: MoneyMeta


class InsightsResult(BaseModel):
    insights: list[SpendingInsightResponse]
    money: MoneyMeta


class MerchantsResult(BaseModel):
    merchants: list[MerchantSummaryResponse]
    money: MoneyMeta


class DayOfWeekResult(BaseModel):
    days: list[DayOfWeekSpendingResponse]
    money: MoneyMeta


class MonthlySummaryResult(BaseModel):
    year: int
    months: list[MonthSummaryResponse]
    money: MoneyMeta
