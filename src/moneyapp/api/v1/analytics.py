"""Spending analytics endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.user import User
from moneyapp.schemas.analytics import (
    DayOfWeekResult,
    DayOfWeekSpendingResponse,
    InsightsResult,
    MerchantSummaryResponse,
    MerchantsResult,
    MonthlyCategoryTotalsResponse,
    MonthlySummaryResult,
    MonthSummaryResponse,
    SpendingForecastResponse,
    SpendingInsightResponse,
    TrendsResult,
)
from moneyapp.schemas.common import money_meta
from moneyapp.services.analytics import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get(
    "/trends",
    response_model=TrendsResult,
    summary="Monthly spending by category",
)
async def spending_trends(
    months: Annotated[int, Query(ge=1, le=36)] = 12,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TrendsResult:
    trends = await AnalyticsService(db).get_spending_trends(current_user.id, months)
    return TrendsResult(
        trends=[MonthlyCategoryTotalsResponse.model_validate(t) for t in trends],
        money=money_meta(),
    )


@router.get(
    "/insights",
    response_model=InsightsResult,
    summary="Significant month-over-month changes",
    description="Categories whose spend this month moved more than 20% against last month.",
)
async def spending_insights(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InsightsResult:
    insights = await AnalyticsService(db).get_spending_insights(current_user.id)
    return InsightsResult(
        insights=[SpendingInsightResponse.model_validate(i) for i in insights],
        money=money_meta(),
    )


@router.get("/merchants", response_model=MerchantsResult, summary="Top merchants by spend")
async def top_merchants(
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MerchantsResult:
    merchants = await AnalyticsService(db).get_top_merchants(current_user.id, limit)
    return MerchantsResult(
        merchants=[MerchantSummaryResponse.model_validate(m) for m in merchants],
        money=money_meta(),
    )


@router.get("/day-of-week", response_model=DayOfWeekResult, summary="Spending by weekday")
async def day_of_week(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DayOfWeekResult:
    days = await AnalyticsService(db).get_spending_by_day_of_week(current_user.id)
    return DayOfWeekResult(
        days=[DayOfWeekSpendingResponse.model_validate(d) for d in days],
        money=money_meta(),
    )


@router.get(
    "/monthly-summary",
    response_model=MonthlySummaryResult,
    summary="Income, expenses and top category per month of a year",
)
async def monthly_summary(
    year: Annotated[int | None, Query(ge=1970, le=2100)] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MonthlySummaryResult:
    year = year or date.today().year
    months = await AnalyticsService(db).get_monthly_summary(current_user.id, year)
    return MonthlySummaryResult(
        year=year,
        months=[MonthSummaryResponse.model_validate(m) for m in months],
        money=money_meta(),
    )


@router.get(
    "/forecast",
    response_model=SpendingForecastResponse,
    summary="Next-month spending forecast",
)
async def spending_forecast(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SpendingForecastResponse:
    forecast = await AnalyticsService(db).get_spending_forecast(current_user.id)
    return SpendingForecastResponse.model_validate(forecast)
