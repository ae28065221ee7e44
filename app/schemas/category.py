"""Category request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """One batch-ingest descriptor, checked after the name/slug presence test."""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    icon: str | None = None
    subcategories: list[str] = Field(default_factory=list)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1)
    icon: str | None = None
    subcategories: list[str] | None = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    icon: str | None = None
    subcategories: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FailedCategory(BaseModel):
    category_data: Any
    reason: str


class CategoryBatchResponse(BaseModel):
    message: str
    created: list[CategoryResponse] | None = None
    failed: list[FailedCategory]
