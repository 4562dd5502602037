"""Budget model: a spending target for one category over a date window."""
import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from moneyapp.models.base import BaseModel, UTCDateTime


class BudgetPeriod(str, enum.Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class Budget(BaseModel):
    """Budget definition. Spending is computed on read, never stored."""

    __tablename__ = "budgets"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(
        Enum(BudgetPeriod, name="budget_period", native_enum=False, length=20),
        default=BudgetPeriod.MONTHLY,
        nullable=False,
    )
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_budgets_user_id_category", "user_id", "category"),
    )

    def __repr__(self) -> str:
        return f"<Budget(id={self.id}, category={self.category}, amount={self.amount})>"
