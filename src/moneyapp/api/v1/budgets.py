"""Budget endpoints. Spending is computed at request time."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.budget import Budget
from moneyapp.models.user import User
from moneyapp.schemas.budget import (
    BudgetCategoriesResult,
    BudgetCreate,
    BudgetListResult,
    BudgetResponse,
    BudgetUpdate,
)
from moneyapp.schemas.common import money_meta
from moneyapp.services.budget import BudgetService, BudgetSpending

router = APIRouter(prefix="/budgets", tags=["budgets"])


def to_response(budget: Budget, spending: BudgetSpending) -> BudgetResponse:
    response = BudgetResponse.model_validate(budget)
    response.spent = spending.spent
    response.remaining = spending.remaining
    response.percent_used = spending.percent_used
    return response


@router.get(
    "",
    response_model=BudgetListResult,
    summary="List active budgets with spending",
)
async def list_budgets(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetListResult:
    rows = await BudgetService(db).list_budgets(current_user.id)
    return BudgetListResult(
        budgets=[to_response(budget, spending) for budget, spending in rows],
        money=money_meta(),
    )


@router.get(
    "/categories",
    response_model=BudgetCategoriesResult,
    summary="Categories with enough history to budget against",
)
async def available_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetCategoriesResult:
    categories = await BudgetService(db).get_available_categories(current_user.id)
    return BudgetCategoriesResult(categories=categories)


@router.post(
    "",
    response_model=BudgetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a budget",
    description="""
    The end date is derived from **period** and **start_date**. A budget may
    not overlap another active budget for the same category (BUDGET_002).
    """,
)
async def create_budget(
    body: BudgetCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetResponse:
    service = BudgetService(db)
    budget = await service.create_budget(
        current_user.id,
        name=body.name,
        category=body.category,
        amount=body.amount,
        period=body.period,
        start_date=body.start_date,
    )
    return to_response(budget, await service.compute_spending(budget))


@router.get("/{budget_id}", response_model=BudgetResponse, summary="Get a budget")
async def get_budget(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetResponse:
    service = BudgetService(db)
    budget = await service.get_budget(current_user.id, budget_id)
    return to_response(budget, await service.compute_spending(budget))


@router.put("/{budget_id}", response_model=BudgetResponse, summary="Update a budget")
async def update_budget(
    budget_id: UUID,
    body: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetResponse:
    service = BudgetService(db)
    budget = await service.update_budget(
        current_user.id, budget_id, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    return to_response(budget, await service.compute_spending(budget))


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a budget",
)
async def delete_budget(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await BudgetService(db).delete_budget(current_user.id, budget_id)
