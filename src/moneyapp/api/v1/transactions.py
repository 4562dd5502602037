"""Transaction query and categorization endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.user import User
from moneyapp.repositories.transaction import TransactionFilters, TransactionRepository
from moneyapp.schemas.common import PaginationMeta, money_meta
from moneyapp.schemas.transaction import (
    CategorySpending,
    CategorySpendingResult,
    CategorySuggestionResponse,
    CategoryUpdateRequest,
    MonthlyTrend,
    MonthlyTrendResult,
    NotesUpdateRequest,
    RecategorizeResult,
    SuggestionsResult,
    TransactionListResult,
    TransactionResponse,
    TransactionSummary,
)
from moneyapp.services.analytics import AnalyticsService
from moneyapp.services.categorization import CategorizationService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List transactions with filters",
    description="""
    Query synced transactions with filtering options.

    ## Filters
    - **account_id**: Filter by account
    - **category**: Filter by display category
    - **start_date**, **end_date**: Date range filter (inclusive)
    - **search**: Search name and merchant (case-insensitive)
    - **pending**: Only pending / only posted

    Results are newest first. The summary covers the whole filtered set,
    not just the current page.
    """,
)
async def list_transactions(
    account_id: Annotated[UUID | None, Query()] = None,
    category: Annotated[str | None, Query(max_length=100)] = None,
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    pending: Annotated[bool | None, Query()] = None,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=200, description="Items per page")] = 50,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionListResult:
    repo = TransactionRepository(db)
    filters = TransactionFilters(
        account_id=account_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
        pending=pending,
    )
    transactions, total = await repo.list_filtered(
        current_user.id, filters, skip=(page - 1) * limit, limit=limit
    )
    income, expenses, count = await repo.summarize(current_user.id, filters)

    return TransactionListResult(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        pagination=PaginationMeta.build(page, limit, total),
        summary=TransactionSummary(
            total_income=income, total_expenses=expenses, net=income - expenses, count=count
        ),
        money=money_meta(),
    )


@router.get(
    "/by-category",
    response_model=CategorySpendingResult,
    summary="Spending grouped by category",
)
async def spending_by_category(
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategorySpendingResult:
    rows = await TransactionRepository(db).spending_by_category(current_user.id, start_date, end_date)
    grand_total = sum(total for _, total, _ in rows)
    return CategorySpendingResult(
        categories=[
            CategorySpending(
                category=category,
                total=total,
                count=count,
                percentage=round(total / grand_total * 100, 2) if grand_total else 0.0,
            )
            for category, total, count in rows
        ],
        total=grand_total,
        money=money_meta(),
    )


@router.get(
    "/monthly-trends",
    response_model=MonthlyTrendResult,
    summary="Income vs expenses per month",
)
async def monthly_trends(
    months: Annotated[int, Query(ge=1, le=24)] = 6,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MonthlyTrendResult:
    trends = await AnalyticsService(db).get_monthly_income_expense(current_user.id, months)
    return MonthlyTrendResult(
        trends=[MonthlyTrend.model_validate(t) for t in trends],
        money=money_meta(),
    )


@router.post(
    "/recategorize",
    response_model=RecategorizeResult,
    summary="Re-run categorization over all transactions",
    description="Applies the current rules, including learned corrections, to every transaction.",
)
async def recategorize(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RecategorizeResult:
    result = await CategorizationService(db).recategorize(current_user.id)
    return RecategorizeResult(**result)


@router.put(
    "/{transaction_id}/category",
    response_model=TransactionResponse,
    summary="Correct a transaction's category",
    description="""
    Sets the display category and learns from the correction: future
    transactions from the same merchant (and with the same keywords)
    resolve to the new category.
    """,
)
async def update_category(
    transaction_id: UUID,
    body: CategoryUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    txn = await CategorizationService(db).correct_category(
        current_user.id, transaction_id, body.category
    )
    return TransactionResponse.model_validate(txn)


@router.get(
    "/{transaction_id}/suggestions",
    response_model=SuggestionsResult,
    summary="Category suggestions for a transaction",
)
async def get_suggestions(
    transaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SuggestionsResult:
    txn, best, suggestions = await CategorizationService(db).get_suggestions(
        current_user.id, transaction_id
    )
    return SuggestionsResult(
        transaction_id=txn.id,
        current_category=txn.display_category,
        best=CategorySuggestionResponse.model_validate(best),
        suggestions=[CategorySuggestionResponse.model_validate(s) for s in suggestions],
    )


@router.put(
    "/{transaction_id}/notes",
    response_model=TransactionResponse,
    summary="Update a transaction's notes",
)
async def update_notes(
    transaction_id: UUID,
    body: NotesUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    txn = await CategorizationService(db).update_notes(current_user.id, transaction_id, body.notes)
    return TransactionResponse.model_validate(txn)
