"""Item schemas for request/response validation."""
from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from boxbox.config import settings
from boxbox.schemas.base import CamelModel, strip_name


class ItemCreate(CamelModel):
    """Schema for creating an item in a box."""
    box_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    quantity: Optional[int] = Field(default=None, validate_default=True)
    image: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return strip_name(value)

    @field_validator("quantity")
    @classmethod
    def default_quantity(cls, value: Optional[int]) -> int:
        if value is not None and value < 0:
            raise ValueError("Quantity must be positive")
        return value or 1

    @field_validator("image")
    @classmethod
    def default_image(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            return settings.ITEM_PLACEHOLDER_IMAGE
        return value


class ItemUpdate(CamelModel):
    """Schema for updating an item. Changing box_id moves the item."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    box_id: Optional[str] = Field(default=None, min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return strip_name(value)


class ItemResponse(CamelModel):
    """Schema for item response."""
    id: str
    box_id: str
    name: str
    description: str = ""
    quantity: int = 1
    image: str
    created_at: datetime


class ItemPage(CamelModel):
    """One page of a cursor-paginated item listing."""
    items: List[ItemResponse]
    next_cursor: Optional[str] = None
