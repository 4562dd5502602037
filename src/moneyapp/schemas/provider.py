"""Raw provider records.

These models are the boundary between the provider's JSON payloads and the
reconciliation engine. Amounts arrive as decimal dollars and are converted to
minor units here, once; the sign convention (negative = inflow) is kept.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator


def to_minor_units(value: Any, minor_unit: int = 2) -> int | None:
    """Convert a decimal amount (e.g., 12.34) to minor units (1234)."""
    if value is None:
        return None
    scaled = Decimal(str(value)) * (Decimal(10) ** minor_unit)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RawAccount(BaseModel):
    """An account as returned by the provider's account-list call.

    All balances are in minor units. String limits mirror the ``accounts`` columns so
    an over-long record is rejected here rather than by the database.
    """

    account_id: str = Field(..., max_length=255, description="Provider account id (stable across syncs)")
    name: str = Field(..., max_length=255, description="Display name")
    official_name: str | None = Field(None, max_length=255)
    type: str = Field(default="other", max_length=50)
    subtype: str | None = Field(None, max_length=50)
    mask: str | None = Field(None, max_length=10)
    current_balance: int = Field(default=0, description="Current balance (minor units)")
    available_balance: int | None = Field(None, description="Available balance (minor units)")
    credit_limit: int | None = Field(None, description="Credit limit (minor units)")

    @field_validator("account_id", "name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> "RawAccount":
        balances = data.get("balances") or {}
        return cls(
            account_id=data.get("account_id", ""),
            name=data.get("name") or data.get("official_name") or "",
            official_name=data.get("official_name"),
            type=data.get("type") or "other",
            subtype=data.get("subtype"),
            mask=data.get("mask"),
            current_balance=to_minor_units(balances.get("current")) or 0,
            available_balance=to_minor_units(balances.get("available")),
            credit_limit=to_minor_units(balances.get("limit")),
        )


class RawTransaction(BaseModel):
    """A transaction as returned by the provider's transaction-list call.

    ``amount`` is signed and in minor units: negative = inflow. String limits
    mirror the ``transactions`` columns.
    """

    transaction_id: str = Field(..., max_length=255)
    account_id: str = Field(..., max_length=255)
    name: str = Field(..., max_length=500)
    merchant_name: str | None = Field(None, max_length=255)
    amount: int = Field(..., description="Signed amount (minor units)")
    date: dt.date
    authorized_date: dt.date | None = None
    category: list[str] = Field(default_factory=list, description="Provider category path")
    pending: bool = False
    city: str | None = Field(None, max_length=100)
    region: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=10, description="ISO country code")

    @field_validator("transaction_id", "account_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def category_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return [str(c) for c in v if c]

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> "RawTransaction":
        location = data.get("location") or {}
        return cls(
            transaction_id=data.get("transaction_id", ""),
            account_id=data.get("account_id", ""),
            name=data.get("name") or data.get("merchant_name") or "",
            merchant_name=data.get("merchant_name"),
            amount=to_minor_units(data.get("amount")),
            date=data.get("date"),
            authorized_date=data.get("authorized_date"),
            category=data.get("category"),
            pending=bool(data.get("pending", False)),
            city=location.get("city"),
            region=location.get("region"),
            country=location.get("country"),
        )

    @property
    def detailed_category(self) -> str | None:
        return self.category[1] if len(self.category) > 1 else None


class ExchangeResult(BaseModel):
    """Outcome of exchanging a short-lived public token."""

    access_token: str
    item_id: str
