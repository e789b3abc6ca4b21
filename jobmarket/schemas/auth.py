"""
Authentication-related schemas.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from jobmarket.models.user import UserRole

PHONE_PATTERN = re.compile(r"^(\+?91[\-\s]?|0)?[6-9]\d{9}$")


def check_password_strength(v: str) -> str:
    """Ensure password meets complexity requirements."""
    errors = []

    if len(v) < 6:
        errors.append("at least 6 characters")
    if not re.search(r'[A-Z]', v):
        errors.append("one uppercase letter")
    if not re.search(r'[a-z]', v):
        errors.append("one lowercase letter")
    if not re.search(r'\d', v):
        errors.append("one digit")

    if errors:
        raise ValueError(f"Password must contain: {', '.join(errors)}")

    return v


def check_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    if not PHONE_PATTERN.match(v):
        raise ValueError("Please provide a valid phone number")
    return v


class RegisterRequest(BaseModel):
    """Registration request for applicants and employers."""

    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: EmailStr = Field(description="User email address")
    password: str = Field(max_length=128, description="User password")
    role: Optional[UserRole] = Field(default=None, description="Defaults to applicant")
    phone: Optional[str] = None
    company_name: Optional[str] = Field(default=None, min_length=2, max_length=100)

    @field_validator("first_name", "last_name", "company_name", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return check_phone(v)


class LoginRequest(BaseModel):
    """Login request with email and password."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()


class TokenRequest(BaseModel):
    """Body carrying a refresh token (refresh and logout)."""

    refresh_token: Optional[str] = Field(default=None, description="Current refresh token")


class UserSummary(BaseModel):
    """User fields returned with a token pair."""

    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    company_name: Optional[str] = None
    is_email_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AuthData(BaseModel):
    user: UserSummary
    access_token: str = Field(description="JWT access token")
    refresh_token: str = Field(description="JWT refresh token for token renewal")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Access token expiration in seconds")


class AuthResponse(BaseModel):
    """Register/login response with tokens."""

    status: str = "success"
    message: str
    data: AuthData


class RefreshData(BaseModel):
    access_token: str = Field(description="New JWT access token")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Access token expiration in seconds")
    refresh_token: Optional[str] = Field(
        default=None,
        description="Replacement refresh token, only present when rotation is enabled",
    )


class RefreshResponse(BaseModel):
    """Response with new access token."""

    status: str = "success"
    message: str = "Token refreshed successfully"
    data: RefreshData


class MessageResponse(BaseModel):
    status: str = "success"
    message: str
