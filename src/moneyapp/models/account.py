"""Account model representing one linked bank/financial account."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from moneyapp.models.base import BaseModel, UTCDateTime, utcnow


class Account(BaseModel):
    """Bank account synced from the provider.

    ``external_account_id`` and ``user_id`` are immutable after creation;
    balances are stored in minor units.
    """

    __tablename__ = "accounts"

    external_account_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    official_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    subtype: Mapped[str] = mapped_column(String(50), nullable=False, default="unknown")
    mask: Mapped[str | None] = mapped_column(String(10), nullable=True)
    current_balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    available_balance: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    credit_limit: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name}, mask={self.mask})>"
