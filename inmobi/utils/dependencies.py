"""
FastAPI dependency injection utilities for authentication, services and language negotiation.
"""

from typing import Optional
from fastapi import Depends, Header, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.database import get_db
from inmobi.models.user import User, UserRole
from inmobi.services.auth import AuthService
from inmobi.services.cache import PropertyCache, get_property_cache
from inmobi.services.chat import ChatService, get_chat_service
from inmobi.services.dashboard import DashboardService
from inmobi.services.draft import DraftService
from inmobi.services.email import EmailService, get_email_service
from inmobi.services.favorite import FavoriteService
from inmobi.services.geocoding import GeocodingService, get_geocoding_service
from inmobi.services.i18n import negotiate_language
from inmobi.services.image import ImageService
from inmobi.services.market import MarketService
from inmobi.services.message import MessageService
from inmobi.services.notifications import NotificationHub, get_notification_hub
from inmobi.services.payment import PaymentService
from inmobi.services.property import PropertyService
from inmobi.services.seo import SEOService
from inmobi.services.tour import TourService
from inmobi.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InactiveUserError,
    InsufficientPermissionsError,
    PremiumFeatureRequiredError,
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    cache: PropertyCache = Depends(get_property_cache),
    hub: NotificationHub = Depends(get_notification_hub),
    chat_service: ChatService = Depends(get_chat_service)
) -> PropertyService:
    return PropertyService(db, cache=cache, hub=hub, chat_service=chat_service)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_message_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> MessageService:
    return MessageService(db, email_service=email_service)


async def get_draft_service(
    db: AsyncSession = Depends(get_db),
    property_service: PropertyService = Depends(get_property_service)
) -> DraftService:
    return DraftService(db, property_service)


async def get_tour_service(db: AsyncSession = Depends(get_db)) -> TourService:
    return TourService(db)


async def get_market_service(
    db: AsyncSession = Depends(get_db),
    cache: PropertyCache = Depends(get_property_cache)
) -> MarketService:
    return MarketService(db, cache=cache)


async def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


async def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


async def get_image_service(db: AsyncSession = Depends(get_db)) -> ImageService:
    return ImageService(db)


async def get_seo_service(db: AsyncSession = Depends(get_db)) -> SEOService:
    return SEOService(db)


async def get_geocoder() -> GeocodingService:
    return get_geocoding_service()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active:
        raise InactiveUserError()
    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")
    return current_user


async def get_current_agent_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Raises:
        InsufficientPermissionsError: If user is not an agent or admin
    """
    if current_user.role not in [UserRole.AGENT, UserRole.ADMIN]:
        raise InsufficientPermissionsError("access agent resources")
    return current_user


def require_role(required_role: UserRole):
    """Create a dependency that requires ``required_role`` (admins always pass)."""
    async def role_dependency(
        current_user: User = Depends(get_current_active_user)
    ) -> User:
        if current_user.role != required_role and current_user.role != UserRole.ADMIN:
            raise InsufficientPermissionsError(f"access {required_role.value} resources")
        return current_user

    return role_dependency


async def require_premium_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Raises:
        PremiumFeatureRequiredError: If the caller is on the free tier
    """
    if not current_user.has_premium_access:
        raise PremiumFeatureRequiredError("This feature")
    return current_user


# Optional authentication dependency (for public endpoints that can benefit from user context)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """User behind a valid token, or None when no or an unusable token was sent."""
    if not credentials:
        return None

    try:
        user = await auth_service.get_current_user(credentials.credentials)
    except APIException:
        return None
    return user if user.is_active else None


async def get_language(
    lang: Optional[str] = Query(None, description="Explicit language tag, e.g. es-MX"),
    accept_language: Optional[str] = Header(None),
    current_user: Optional[User] = Depends(get_optional_current_user)
) -> str:
    """Response language: ``lang`` parameter, user preference, Accept-Language, then en-GB."""
    preference = current_user.preferred_language if current_user else None
    return negotiate_language(lang, preference, accept_language)
