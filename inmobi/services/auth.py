"""
Authentication service for registration, login, token management and account administration.
"""

from typing import Optional, Tuple, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.repositories.user import UserRepository
from inmobi.models.user import User, UserRole, SubscriptionTier
from inmobi.schemas.auth import RegisterRequest
from inmobi.services.i18n import normalize_language
from inmobi.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token,
)
from inmobi.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ValidationError,
    BadRequestError,
    DuplicateResourceError,
    InsufficientPermissionsError,
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts, tokens and role-based access control.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: RegisterRequest) -> User:
        """
        Register a new account with the user role.

        Raises:
            DuplicateResourceError: If the username or email is taken
            ValidationError: If the email or password is rejected
        """
        try:
            if await self.user_repo.get_by_username(user_data.username):
                raise DuplicateResourceError("User", user_data.username)
            if await self.user_repo.get_by_email(user_data.email):
                raise DuplicateResourceError("User", user_data.email)

            create_data = user_data.model_dump(exclude_none=True)
            create_data["role"] = UserRole.USER
            user = await self.user_repo.create_user(create_data)

            logger.info(f"User registered: {user.username} (ID: {user.id})")
            return user
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to register user: {e}")
            raise BadRequestError(f"Failed to register user: {str(e)}")

    async def authenticate_user(self, identifier: str, password: str) -> User:
        """
        Authenticate with an email address or username.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        if not identifier or not identifier.strip():
            raise ValidationError("Email or username is required")
        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(identifier.strip(), password)
        if not user:
            logger.warning(f"Failed authentication attempt for: {identifier}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login attempt on inactive account: {user.username}")
            raise InactiveUserError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, identifier: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(identifier, password)
        access_token, refresh_token = self.create_tokens(user)
        logger.info(f"User logged in: {user.username}")
        return user, access_token, refresh_token

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("Token subject no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from a refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid or is an access token
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, "refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """Resolve the user behind an access token."""
        return await self._user_from_token(token, "access")

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Raises:
            NotFoundError: If user not found
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def update_profile(self, user: User, update_data: Dict[str, Any]) -> User:
        """Update the caller's own full_name, bio, phone and profile_image."""
        allowed = {"full_name", "bio", "phone", "profile_image"}
        changes = {k: v for k, v in update_data.items() if k in allowed and v is not None}
        if not changes:
            return user
        try:
            updated = await self.user_repo.update_instance(user, changes)
            logger.info(f"Profile updated for user: {user.username}")
            return updated
        except Exception as e:
            logger.error(f"Failed to update profile for {user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

    async def set_preferred_language(self, user: User, language: str) -> User:
        """
        Store the caller's language, normalized to a supported tag.

        Raises:
            BadRequestError: If no supported language matches
        """
        normalized = normalize_language(language)
        if normalized is None:
            raise BadRequestError(f"Unsupported language: {language}")
        return await self.user_repo.update_instance(user, {"preferred_language": normalized})

    def can_manage_resource(self, user: User, resource_owner_id: uuid.UUID) -> bool:
        return user.can_manage(resource_owner_id)

    # Administration

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        tier: Optional[SubscriptionTier] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        return await self.user_repo.list_users(
            role=role, tier=tier, is_active=is_active, search=search, skip=skip, limit=limit
        )

    async def update_user_status(self, user_id: uuid.UUID, is_active: bool, current_user: User) -> User:
        """
        Activate or deactivate an account.

        Raises:
            InsufficientPermissionsError: If an admin tries to deactivate themselves
        """
        target_user = await self.get_user_by_id(user_id)
        if target_user.id == current_user.id and not is_active:
            raise InsufficientPermissionsError("deactivate your own account")

        updated_user = await self.user_repo.update_instance(target_user, {"is_active": is_active})
        status_text = "activated" if is_active else "deactivated"
        logger.info(f"User {status_text} by {current_user.username}: {user_id}")
        return updated_user

    async def update_user_role(self, user_id: uuid.UUID, new_role: UserRole, current_user: User) -> User:
        """
        Raises:
            InsufficientPermissionsError: If an admin tries to change their own role
        """
        target_user = await self.get_user_by_id(user_id)
        if target_user.id == current_user.id:
            raise InsufficientPermissionsError("change your own role")

        updated_user = await self.user_repo.update_instance(target_user, {"role": new_role})
        logger.info(f"User role updated by {current_user.username}: {user_id} -> {new_role.value}")
        return updated_user

    async def update_user_verified(self, user_id: uuid.UUID, is_verified: bool, current_user: User) -> User:
        target_user = await self.get_user_by_id(user_id)
        updated_user = await self.user_repo.update_instance(target_user, {"is_verified": is_verified})
        logger.info(f"User verification set to {is_verified} by {current_user.username}: {user_id}")
        return updated_user
