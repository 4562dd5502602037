"""User category rule endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.user import User
from moneyapp.schemas.category_rule import CategoryRuleCreate, CategoryRuleResponse
from moneyapp.services.category_rule import CategoryRuleService

router = APIRouter(prefix="/category-rules", tags=["category-rules"])


@router.get(
    "",
    response_model=list[CategoryRuleResponse],
    summary="List category rules",
    description="Rules in evaluation order (highest priority first).",
)
async def list_rules(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryRuleResponse]:
    rules = await CategoryRuleService(db).list_rules(current_user.id)
    return [CategoryRuleResponse.model_validate(r) for r in rules]


@router.post(
    "",
    response_model=CategoryRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create or replace a category rule",
    description="""
    Literal rules match as case-insensitive substrings of the merchant and
    transaction name. With **is_pattern** the pattern is a regular
    expression; invalid expressions are rejected (RULE_001).
    """,
)
async def create_rule(
    body: CategoryRuleCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryRuleResponse:
    rule = await CategoryRuleService(db).create_rule(
        current_user.id,
        body.pattern,
        body.category,
        is_pattern=body.is_pattern,
        priority=body.priority,
    )
    return CategoryRuleResponse.model_validate(rule)


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category rule",
)
async def delete_rule(
    rule_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CategoryRuleService(db).delete_rule(current_user.id, rule_id)
