"""Linked account endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moneyapp.api.deps import get_current_user
from moneyapp.db.session import get_db
from moneyapp.models.user import User
from moneyapp.repositories.account import AccountRepository
from moneyapp.schemas.common import money_meta
from moneyapp.schemas.sync import AccountListResult, AccountResponse

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get(
    "",
    response_model=AccountListResult,
    summary="List linked accounts",
    description="Active accounts from the last sync. Balances are in minor units.",
)
async def list_accounts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AccountListResult:
    accounts = await AccountRepository(db).get_all_by_user(current_user.id, active_only=True)
    return AccountListResult(
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        total_balance=sum(a.current_balance for a in accounts),
        money=money_meta(),
    )
