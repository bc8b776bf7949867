"""User schemas for request/response validation."""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from boxbox.schemas.base import CamelModel


class UserCreate(CamelModel):
    """Schema for registering a user."""
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = None


class UserResponse(CamelModel):
    """Schema for user response."""
    id: str
    email: EmailStr
    name: Optional[str] = None
    is_active: bool
    created_at: datetime


class LoginRequest(CamelModel):
    """Credentials for a login."""
    email: EmailStr
    password: str


class Token(CamelModel):
    """JWT token schema."""
    access_token: str
    token_type: str = "bearer"
