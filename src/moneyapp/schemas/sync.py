"""Provider connection and sync schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from moneyapp.models.user import SyncStatus
from moneyapp.schemas.common import MoneyMeta


class ConnectRequest(BaseModel):
    public_token: str = Field(..., min_length=1, description="Short-lived token from Plaid Link")


class ConnectResponse(BaseModel):
    connected: bool = True
    institution_id: str | None = None
    institution_name: str | None = None
    sync_scheduled: bool = Field(description="Whether an initial sync was queued")


class DisconnectResponse(BaseModel):
    accounts_removed: int
    transactions_removed: int


class SyncStartedResponse(BaseModel):
    """Acknowledgment of a queued sync; the outcome is read from ``GET /sync/status``."""

    message: str
    status: SyncStatus
    force: bool = False


class SyncStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    connected: bool
    status: SyncStatus
    last_sync_at: datetime | None = None
    transaction_count: int = 0
    institution_name: str | None = None
    error: str | None = None
    retry_allowed: bool = True


class SyncAllResponse(BaseModel):
    message: str
    started_at: datetime


class AccountResponse(BaseModel):
    """Linked account. Balances are in minor units."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    official_name: str | None
    type: str
    subtype: str
    mask: str | None
    current_balance: int
    available_balance: int | None
    credit_limit: int | None
    last_updated_at: datetime


class AccountListResult(BaseModel):
    accounts: list[AccountResponse]
    total_balance: int = Field(description="Sum of current balances (minor units)")
    money: MoneyMeta
