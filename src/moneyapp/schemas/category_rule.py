"""Category rule schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CategoryRuleCreate(BaseModel):
    pattern: str = Field(..., min_length=1, max_length=255, description="Text or regular expression")
    is_pattern: bool = Field(False, description="Treat pattern as a regular expression")
    category: str = Field(..., min_length=1, max_length=100)
    priority: int = Field(5, ge=0, le=100, description="Higher wins")


class CategoryRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    pattern: str
    is_pattern: bool
    category: str
    priority: int
    created_at: datetime
    updated_at: datetime
