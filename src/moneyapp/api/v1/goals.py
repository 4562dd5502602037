"""Savings goal endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.savings_goal import SavingsGoal
from moneyapp.models.user import User
from moneyapp.schemas.common import money_meta
from moneyapp.schemas.savings_goal import (
    AmountRequest,
    ContributionSuggestionResponse,
    GoalAnalyticsResponse,
    GoalProgressHistoryResponse,
    SavingsGoalCreate,
    SavingsGoalListResult,
    SavingsGoalResponse,
    SavingsGoalUpdate,
)
from moneyapp.services.savings_goal import SavingsGoalService, compute_progress

router = APIRouter(prefix="/goals", tags=["goals"])


def to_response(goal: SavingsGoal) -> SavingsGoalResponse:
    progress = compute_progress(goal)
    response = SavingsGoalResponse.model_validate(goal)
    response.progress_percentage = progress.progress_percentage
    response.remaining_amount = progress.remaining_amount
    response.days_remaining = progress.days_remaining
    response.is_overdue = progress.is_overdue
    return response


@router.get("", response_model=SavingsGoalListResult, summary="List savings goals")
async def list_goals(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalListResult:
    rows = await SavingsGoalService(db).list_goals(current_user.id)
    return SavingsGoalListResult(goals=[to_response(goal) for goal, _ in rows], money=money_meta())


@router.get(
    "/analytics",
    response_model=GoalAnalyticsResponse,
    summary="Totals and progress across all goals",
)
async def goal_analytics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GoalAnalyticsResponse:
    analytics = await SavingsGoalService(db).get_goal_analytics(current_user.id)
    return GoalAnalyticsResponse.model_validate(analytics)


@router.get(
    "/contribution-suggestion",
    response_model=ContributionSuggestionResponse,
    summary="Suggested monthly contribution from recent income",
)
async def contribution_suggestion(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ContributionSuggestionResponse:
    suggestion = await SavingsGoalService(db).suggest_contribution(current_user.id)
    return ContributionSuggestionResponse.model_validate(suggestion)


@router.post(
    "",
    response_model=SavingsGoalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a savings goal",
)
async def create_goal(
    body: SavingsGoalCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalResponse:
    goal = await SavingsGoalService(db).create_goal(
        current_user.id,
        name=body.name,
        target_amount=body.target_amount,
        target_date=body.target_date,
        description=body.description,
        category=body.category,
    )
    return to_response(goal)


@router.get("/{goal_id}", response_model=SavingsGoalResponse, summary="Get a savings goal")
async def get_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalResponse:
    goal = await SavingsGoalService(db).get_goal(current_user.id, goal_id)
    return to_response(goal)


@router.put("/{goal_id}", response_model=SavingsGoalResponse, summary="Update a savings goal")
async def update_goal(
    goal_id: UUID,
    body: SavingsGoalUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalResponse:
    goal = await SavingsGoalService(db).update_goal(
        current_user.id, goal_id, body.model_dump(exclude_unset=True)
    )
    return to_response(goal)


@router.post(
    "/{goal_id}/add",
    response_model=SavingsGoalResponse,
    summary="Add money to a goal",
)
async def add_to_goal(
    goal_id: UUID,
    body: AmountRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalResponse:
    goal = await SavingsGoalService(db).add_to_goal(current_user.id, goal_id, body.amount)
    return to_response(goal)


@router.post(
    "/{goal_id}/remove",
    response_model=SavingsGoalResponse,
    summary="Withdraw money from a goal",
    description="The saved amount never drops below zero.",
)
async def remove_from_goal(
    goal_id: UUID,
    body: AmountRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SavingsGoalResponse:
    goal = await SavingsGoalService(db).remove_from_goal(current_user.id, goal_id, body.amount)
    return to_response(goal)


@router.get(
    "/{goal_id}/history",
    response_model=GoalProgressHistoryResponse,
    summary="Actual vs expected progress",
)
async def progress_history(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> GoalProgressHistoryResponse:
    history = await SavingsGoalService(db).get_progress_history(current_user.id, goal_id)
    return GoalProgressHistoryResponse.model_validate(history)


@router.delete(
    "/{goal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a savings goal",
)
async def delete_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await SavingsGoalService(db).delete_goal(current_user.id, goal_id)
