"""Schemas shared by several endpoints."""

from pydantic import BaseModel, Field

from moneyapp.config import settings


class MoneyMeta(BaseModel):
    """Metadata describing how monetary amounts are represented."""

    currency: str = Field(description="ISO currency code (e.g., USD)")
    minor_unit: int = Field(
        description="Number of decimal places for the currency (e.g., 2 for cents)"
    )


def money_meta() -> MoneyMeta:
    return MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit)


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""

    page: int = Field(description="Current page number (1-indexed)")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = (total + limit - 1) // limit if total > 0 else 0
        return cls(page=page, limit=limit, total=total, total_pages=total_pages)


class MessageResponse(BaseModel):
    message: str
