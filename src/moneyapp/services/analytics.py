"""Read-only analytics over categorized transactions.

All amounts are minor units. Expenses are positive amounts, income negative;
uncategorized rows count as "Other".
"""

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.categorization.rules import OTHER
from moneyapp.repositories.transaction import TransactionRepository

MEDIUM_CHANGE_THRESHOLD = 20.0
HIGH_CHANGE_THRESHOLD = 50.0
FORECAST_WINDOW_MONTHS = 6
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def shift_months(day: date, months: int) -> date:
    """Move ``day`` by whole months, clamping to the end of shorter months."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def month_bounds(day: date) -> tuple[date, date]:
    first = day.replace(day=1)
    last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    return first, last


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


@dataclass
class MonthlyCategoryTotals:
    month: str
    categories: dict[str, int]
    total: int


@dataclass
class SpendingInsight:
    category: str
    previous_amount: int
    current_amount: int
    change: int
    percent_change: float
    type: str
    severity: str


@dataclass
class MerchantSummary:
    name: str
    total_spent: int
    transaction_count: int
    average_spent: int
    categories: list[str]
    last_transaction: date


@dataclass
class DayOfWeekSpending:
    day: str
    total_spent: int
    transaction_count: int
    average_spent: int


@dataclass
class MonthSummary:
    month: int
    income: int
    expenses: int
    net_income: int
    top_category: str


@dataclass
class MonthlyIncomeExpense:
    month: str
    income: int
    expenses: int
    net: int


@dataclass
class CategoryForecast:
    category: str
    predicted_amount: int
    confidence: float


@dataclass
class SpendingForecast:
    forecast: list[CategoryForecast] = field(default_factory=list)
    total_predicted: int = 0
    data_quality: float = 0.0
    months_of_data: int = 0


def classify_change(previous: int, current: int) -> tuple[float, str | None]:
    """Percent change and severity; a zero baseline counts as no change."""
    percent = ((current - previous) / previous) * 100 if previous > 0 else 0.0
    if abs(percent) > HIGH_CHANGE_THRESHOLD:
        return percent, "high"
    if abs(percent) > MEDIUM_CHANGE_THRESHOLD:
        return percent, "medium"
    return percent, None


class AnalyticsService:
    """Trends, insights, merchant rankings and forecasts for one user."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)

    async def _expenses_between(self, user_id: UUID, start: date, end: date):
        rows = await self.transaction_repo.get_by_date_range(user_id, start, end)
        return [t for t in rows if t.amount > 0]

    async def _category_totals(self, user_id: UUID, start: date, end: date) -> dict[str, int]:
        totals: dict[str, int] = defaultdict(int)
        for txn in await self._expenses_between(user_id, start, end):
            totals[txn.display_category or OTHER] += txn.amount
        return dict(totals)

    async def get_spending_trends(
        self, user_id: UUID, months: int = 12, today: date | None = None
    ) -> list[MonthlyCategoryTotals]:
        """Per-month expense totals by category over the trailing window."""
        today = today or date.today()
        start = shift_months(today, -months)
        by_month: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for txn in await self._expenses_between(user_id, start, today):
            by_month[month_key(txn.date)][txn.display_category or OTHER] += txn.amount
        return [
            MonthlyCategoryTotals(month=m, categories=dict(cats), total=sum(cats.values()))
            for m, cats in sorted(by_month.items())
        ]

    async def get_spending_insights(
        self, user_id: UUID, today: date | None = None
    ) -> list[SpendingInsight]:
        """Categories whose spend moved significantly versus the previous month.

        Compares the current calendar month to date against the whole
        previous calendar month.
        """
        today = today or date.today()
        current_start, _ = month_bounds(today)
        previous_start, previous_end = month_bounds(shift_months(current_start, -1))

        previous = await self._category_totals(user_id, previous_start, previous_end)
        current = await self._category_totals(user_id, current_start, today)

        insights = []
        for category in sorted(set(previous) | set(current)):
            before, now = previous.get(category, 0), current.get(category, 0)
            percent, severity = classify_change(before, now)
            if severity is None:
                continue
            change = now - before
            insights.append(
                SpendingInsight(
                    category=category,
                    previous_amount=before,
                    current_amount=now,
                    change=change,
                    percent_change=round(percent, 2),
                    type="increase" if change > 0 else "decrease",
                    severity=severity,
                )
            )
        insights.sort(key=lambda i: abs(i.percent_change), reverse=True)
        return insights

    async def get_top_merchants(self, user_id: UUID, limit: int = 10) -> list[MerchantSummary]:
        merchants: dict[str, dict] = {}
        for txn in await self.transaction_repo.get_all_by_user(user_id):
            if txn.amount <= 0 or not txn.merchant_name:
                continue
            data = merchants.setdefault(
                txn.merchant_name,
                {"total": 0, "count": 0, "categories": [], "last": txn.date},
            )
            data["total"] += txn.amount
            data["count"] += 1
            category = txn.display_category or OTHER
            if category not in data["categories"]:
                data["categories"].append(category)
            if txn.date > data["last"]:
                data["last"] = txn.date

        summaries = [
            MerchantSummary(
                name=name,
                total_spent=data["total"],
                transaction_count=data["count"],
                average_spent=round(data["total"] / data["count"]),
                categories=data["categories"],
                last_transaction=data["last"],
            )
            for name, data in merchants.items()
        ]
        summaries.sort(key=lambda m: m.total_spent, reverse=True)
        return summaries[:limit]

    async def get_spending_by_day_of_week(self, user_id: UUID) -> list[DayOfWeekSpending]:
        totals = [0] * 7
        counts = [0] * 7
        for txn in await self.transaction_repo.get_all_by_user(user_id):
            if txn.amount <= 0:
                continue
            weekday = txn.date.weekday()
            totals[weekday] += txn.amount
            counts[weekday] += 1
        return [
            DayOfWeekSpending(
                day=DAY_NAMES[i],
                total_spent=totals[i],
                transaction_count=counts[i],
                average_spent=round(totals[i] / counts[i]) if counts[i] else 0,
            )
            for i in range(7)
        ]

    async def get_monthly_summary(self, user_id: UUID, year: int) -> list[MonthSummary]:
        """Income, expenses, net and top expense category for each month of a year."""
        income = [0] * 12
        expenses = [0] * 12
        categories: list[dict[str, int]] = [defaultdict(int) for _ in range(12)]
        rows = await self.transaction_repo.get_by_date_range(
            user_id, date(year, 1, 1), date(year, 12, 31)
        )
        for txn in rows:
            i = txn.date.month - 1
            if txn.amount < 0:
                income[i] += -txn.amount
            else:
                expenses[i] += txn.amount
                categories[i][txn.display_category or OTHER] += txn.amount

        return [
            MonthSummary(
                month=i + 1,
                income=income[i],
                expenses=expenses[i],
                net_income=income[i] - expenses[i],
                top_category=(
                    max(categories[i].items(), key=lambda kv: kv[1])[0] if categories[i] else OTHER
                ),
            )
            for i in range(12)
        ]

    async def get_monthly_income_expense(
        self, user_id: UUID, months: int = 6, today: date | None = None
    ) -> list[MonthlyIncomeExpense]:
        """Income vs expenses per calendar month, oldest first, empty months included."""
        today = today or date.today()
        first_month = shift_months(today.replace(day=1), -(months - 1))
        buckets = {month_key(shift_months(first_month, i)): [0, 0] for i in range(months)}
        for txn in await self.transaction_repo.get_by_date_range(user_id, first_month, today):
            bucket = buckets.get(month_key(txn.date))
            if bucket is None:
                continue
            if txn.amount < 0:
                bucket[0] += -txn.amount
            else:
                bucket[1] += txn.amount
        return [
            MonthlyIncomeExpense(month=m, income=inc, expenses=exp, net=inc - exp)
            for m, (inc, exp) in buckets.items()
        ]

    async def get_spending_forecast(
        self, user_id: UUID, window_months: int = FORECAST_WINDOW_MONTHS, today: date | None = None
    ) -> SpendingForecast:
        """Naive next-month forecast: per-category average over months with data."""
        today = today or date.today()
        start = shift_months(today, -window_months)
        monthly: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for txn in await self._expenses_between(user_id, start, today):
            monthly[month_key(txn.date)][txn.display_category or OTHER] += txn.amount

        months = len(monthly)
        if months == 0:
            return SpendingForecast()

        sums: dict[str, int] = defaultdict(int)
        for categories in monthly.values():
            for category, amount in categories.items():
                sums[category] += amount

        confidence = min(months / window_months, 1.0)
        forecast = [
            CategoryForecast(
                category=category,
                predicted_amount=round(total / months),
                confidence=round(confidence, 2),
            )
            for category, total in sums.items()
        ]
        forecast.sort(key=lambda f: f.predicted_amount, reverse=True)
        return SpendingForecast(
            forecast=forecast,
            total_predicted=sum(f.predicted_amount for f in forecast),
            data_quality=round(confidence, 2),
            months_of_data=months,
        )
