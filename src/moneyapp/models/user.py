"""User model: data owner and per-user sync state."""
import enum
from datetime import datetime

from sqlalchemy import Boolean, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from moneyapp.models.base import BaseModel, UTCDateTime


class SyncStatus(str, enum.Enum):
    """Provider sync state machine.

    NEVER_SYNCED -> SYNCING -> {SYNCED | ERROR | TOKEN_EXPIRED}; SYNCED and
    ERROR go back to SYNCING on the next cycle.
    """

    NEVER_SYNCED = "NEVER_SYNCED"
    SYNCING = "SYNCING"
    SYNCED = "SYNCED"
    ERROR = "ERROR"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


class User(BaseModel):
    """User model representing the root aggregate for all financial data."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Provider link
    provider_access_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider_item_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    institution_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    institution_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Sync state
    sync_status: Mapped[SyncStatus] = mapped_column(
        Enum(SyncStatus, name="sync_status", native_enum=False, length=20),
        default=SyncStatus.NEVER_SYNCED,
        nullable=False,
    )
    last_sync_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_connected(self) -> bool:
        return bool(self.provider_item_id)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, sync_status={self.sync_status})>"
