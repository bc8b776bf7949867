"""Image analysis schemas."""
import math
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

AnalysisProfile = Literal["fast", "balanced", "high"]


class AnalyzeItemRequest(BaseModel):
    """Request to analyze a photo of an item."""
    image: Optional[str] = None
    profile: AnalysisProfile = "fast"


class ItemAnalysis(BaseModel):
    """Fields extracted from a photo. Also validates raw model replies."""
    name: str
    description: str = ""
    quantity: float = Field(gt=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def description_default(cls, value):
        return "" if value is None else value

    @field_validator("quantity")
    @classmethod
    def quantity_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("quantity must be finite")
        return value
