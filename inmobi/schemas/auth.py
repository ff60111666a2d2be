"""
Pydantic schemas for registration, login and token refresh.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from inmobi.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Registration request. New accounts always start with the user role."""

    username: str = Field(..., min_length=3, max_length=50, examples=["jane.doe"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)",
        examples=["securepassword123"]
    )
    full_name: str = Field(..., min_length=1, max_length=255, examples=["Jane Doe"])
    phone: Optional[str] = Field(None, max_length=50)
    preferred_language: Optional[str] = Field(None, max_length=10)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not v or any(c.isspace() for c in v) or "@" in v:
            raise ValueError("Username cannot contain spaces or '@'")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()


class LoginRequest(BaseModel):
    """Login with either an email address or a username."""

    identifier: str = Field(
        ...,
        min_length=1,
        description="Email address or username",
        examples=["jane@example.com"]
    )
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds", examples=[1800])


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(BaseModel):
    """Tokens plus the authenticated user's profile."""

    user: UserResponse
    tokens: TokenResponse


class LogoutResponse(BaseModel):
    message: str = "Successfully logged out"
