"""Listing request/response schemas - REST API contract."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_ADDITIONAL_IMAGES = 4

# Fields that may be changed but never cleared
_REQUIRED_ON_PATCH = (
    "title", "price", "quantity", "category", "subcategory", "location", "main_image", "additional_images",
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ListingQuery(BaseModel):
    """Search/filter/sort parameters for GET /listings. Blank values count as absent."""

    search: str | None = None
    category: str | None = None
    subcategory: str | None = None
    sort_by: str | None = None
    price_order: str | None = None
    date_order: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    radius: float | None = Field(None, ge=0)

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_absent(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @property
    def has_geo(self) -> bool:
        """Geo filter applies only when all three of lat, lng, radius are present."""
        return self.lat is not None and self.lng is not None and self.radius is not None


class ListingCreate(BaseModel):
    """Validated listing fields, after numeric parsing of the multipart form."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(..., ge=0, allow_inf_nan=False)
    quantity: int = Field(..., ge=1)
    category: str = Field(..., min_length=1)
    subcategory: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    main_image: str
    additional_images: list[str] = Field(default_factory=list)
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)

    @field_validator("title", "description", "category", "subcategory", "location", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("additional_images")
    @classmethod
    def truncate_images(cls, value: list[str]) -> list[str]:
        return value[:MAX_ADDITIONAL_IMAGES]


class ListingUpdate(BaseModel):
    """Partial update. Only fields present in the body are applied; owner is not editable."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(None, ge=0, allow_inf_nan=False)
    quantity: int | None = Field(None, ge=1)
    category: str | None = Field(None, min_length=1)
    subcategory: str | None = Field(None, min_length=1)
    location: str | None = Field(None, min_length=1)
    main_image: str | None = Field(None, min_length=1)
    additional_images: list[str] | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)

    @field_validator("title", "description", "category", "subcategory", "location", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("additional_images")
    @classmethod
    def truncate_images(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else value[:MAX_ADDITIONAL_IMAGES]

    @model_validator(mode="after")
    def check_required_and_pairs(self) -> "ListingUpdate":
        for name in _REQUIRED_ON_PATCH:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if ("lat" in self.model_fields_set) != ("lng" in self.model_fields_set):
            raise ValueError("lat and lng must be supplied together")
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must both be set or both be null")
        return self


class GeoPoint(BaseModel):
    type: str = "Point"
    coordinates: list[float]  # [lng, lat]


class ListingResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str | None = None
    price: float
    quantity: int
    category: str
    subcategory: str
    location: str
    main_image: str
    additional_images: list[str] = []
    coordinates: GeoPoint | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ListingEnvelope(BaseModel):
    success: bool = True
    data: ListingResponse


class ListingListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: list[ListingResponse]


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str
