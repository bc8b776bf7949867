"""Box schemas for request/response validation."""
from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from boxbox.schemas.base import CamelModel, strip_name


class BoxCreate(CamelModel):
    """Schema for creating a box. Missing optional fields get defaults."""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return strip_name(value)


class BoxUpdate(CamelModel):
    """Schema for updating a box."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return strip_name(value)


class BoxResponse(CamelModel):
    """Schema for box response."""
    id: str
    name: str
    description: str = ""
    color: str
    item_count: int = 0
    created_at: datetime


class BoxWithItems(BoxResponse):
    """Schema for box with items."""
    items: List["ItemResponse"] = []


class RecountResult(CamelModel):
    """Outcome of recomputing denormalized item counts."""
    checked: int
    corrected: int


# Forward reference for circular import
from boxbox.schemas.item import ItemResponse
BoxWithItems.model_rebuild()
