"""
Authentication API endpoints for registration, login, token refresh and the caller's profile.
"""

from fastapi import APIRouter, Depends, status
from inmobi.config import settings
from inmobi.models.user import User
from inmobi.services.auth import AuthService
from inmobi.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    LogoutResponse,
)
from inmobi.schemas.user import UserResponse, UserProfileUpdate
from inmobi.schemas.error import AUTH_ERROR_RESPONSES, COMMON_ERROR_RESPONSES
from inmobi.utils.dependencies import get_auth_service, get_current_active_user
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    responses={409: COMMON_ERROR_RESPONSES[409], 422: COMMON_ERROR_RESPONSES[422]}
)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.register(register_data)
    return UserResponse.model_validate(user.to_dict())


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="User login",
    description="Authenticate with an email address or username and receive JWT tokens",
    responses=AUTH_ERROR_RESPONSES
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(login_data.identifier, login_data.password)
    return LoginResponse(
        user=UserResponse.model_validate(user.to_dict()),
        tokens=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
        ),
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    summary="Refresh access token",
    responses=AUTH_ERROR_RESPONSES
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=UserResponse, summary="Current user", responses=AUTH_ERROR_RESPONSES)
async def get_me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.put("/me", response_model=UserResponse, summary="Update profile", responses=AUTH_ERROR_RESPONSES)
async def update_me(
    profile_data: UserProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_profile(current_user, profile_data.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user.to_dict())


@router.post("/logout", response_model=LogoutResponse, summary="Logout")
async def logout(current_user: User = Depends(get_current_active_user)) -> LogoutResponse:
    """
    Tokens are stateless; clients discard them. The call is logged for auditing.
    """
    logger.info(f"User logged out: {current_user.username}")
    return LogoutResponse()
