"""Transaction model representing one financial movement."""
import datetime as dt
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Boolean, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from moneyapp.models.base import BaseModel


class Transaction(BaseModel):
    """Transaction synced from the provider.

    ``amount`` is in minor units and keeps the provider sign convention:
    negative = inflow (income), positive = outflow (expense).
    """

    __tablename__ = "transactions"

    external_transaction_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id: Mapped[UUID] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    merchant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    authorized_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    provider_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    display_category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    detailed_category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    pending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    region: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(10), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_transactions_user_id_date", "user_id", "date"),
        Index("ix_transactions_account_id_date", "account_id", "date"),
    )

    @property
    def is_expense(self) -> bool:
        return self.amount > 0

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, name={self.name}, amount={self.amount})>"
