"""Pydantic models for API request/response."""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from domain.model.user import normalize_email


class UserResponse(BaseModel):
    """Public view of a user account."""
    id: str
    email: str
    displayName: Optional[str] = None


class SignupRequest(BaseModel):
    """Request model for email/password sign-up."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize(cls, v):
        return normalize_email(v) or v


class LoginRequest(SignupRequest):
    """Request model for email/password login."""


class AuthResponse(BaseModel):
    """Response model for sign-up and login."""
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    """Response model for GET /auth/me. ``user`` is null when logged out."""
    user: Optional[UserResponse] = None
