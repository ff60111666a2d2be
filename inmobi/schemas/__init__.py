"""
Pydantic schemas for request/response validation.
"""

from inmobi.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    LoginResponse,
    LogoutResponse,
)
from inmobi.schemas.user import (
    PublicUserResponse,
    UserResponse,
    UserProfileUpdate,
    UserListResponse,
)
from inmobi.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchRequest,
)
from inmobi.schemas.error import ErrorDetail, ErrorResponse, APIErrorResponse, COMMON_ERROR_RESPONSES

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "TokenResponse",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "LoginResponse",
    "LogoutResponse",
    "PublicUserResponse",
    "UserResponse",
    "UserProfileUpdate",
    "UserListResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertySearchRequest",
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse",
    "COMMON_ERROR_RESPONSES",
]
