"""
Pydantic schemas for user profiles and admin user management.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from inmobi.models.user import UserRole, SubscriptionTier


class PublicUserResponse(BaseModel):
    """Profile subset shown to other users."""

    id: str
    username: str
    full_name: str
    role: UserRole
    profile_image: Optional[str] = None
    is_verified: bool = False


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(..., description="User's unique identifier")
    username: str = Field(..., examples=["jane.doe"])
    email: str = Field(..., examples=["jane@example.com"])
    full_name: str = Field(..., examples=["Jane Doe"])
    role: UserRole
    subscription_tier: SubscriptionTier
    subscription_status: Optional[str] = None
    subscription_expires_at: Optional[datetime] = None
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: str = "en-GB"
    is_verified: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=50)
    profile_image: Optional[str] = Field(None, max_length=500)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("Full name cannot be empty")
            return v.strip()
        return v


class UserListResponse(BaseModel):
    """Paginated user list for the admin dashboard."""

    users: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserVerifiedUpdate(BaseModel):
    is_verified: bool


class LanguageUpdate(BaseModel):
    language: str = Field(..., min_length=2, max_length=10, examples=["es-MX"])
