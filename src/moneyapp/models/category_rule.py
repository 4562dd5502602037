"""User-specific category rules (learned corrections and explicit overrides).

Rules are user-scoped so each user can correct ambiguous merchant strings
without touching a global merchant dictionary.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from moneyapp.models.base import BaseModel


class CategoryRule(BaseModel):
    """Literal (substring) or regular-expression rule mapping text to a category."""

    __tablename__ = "category_rules"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    pattern: Mapped[str] = mapped_column(String(255), nullable=False)
    is_pattern: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "pattern", "is_pattern", name="uq_category_rule_user_pattern"),
        Index("ix_category_rules_user_id_priority", "user_id", "priority"),
    )

    def __repr__(self) -> str:
        return (
            f"<CategoryRule(id={self.id}, user_id={self.user_id}, "
            f"pattern={self.pattern}, category={self.category})>"
        )
