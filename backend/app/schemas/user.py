"""
Pydantic schemas for User entity and authentication payloads.
"""
from pydantic import EmailStr, Field
from typing import Optional
from app.schemas.common import ApiModel


class UserRegister(ApiModel):
    """Schema for user registration."""
    email: EmailStr
    password: str = Field(min_length=1)
    name: Optional[str] = None


class UserLogin(ApiModel):
    """Schema for user login."""
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(ApiModel):
    """Schema for user response."""
    id: int
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthResponse(ApiModel):
    """User plus the bearer token to send on later requests."""
    user: UserResponse
    token: str


class LogoutResponse(ApiModel):
    success: bool = True
