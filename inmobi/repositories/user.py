"""
User repository for authentication, subscription lookups and admin management.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from inmobi.repositories.base import BaseRepository
from inmobi.models.user import User, UserRole, SubscriptionTier
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Tuple
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Emails are stored normalized and lowercase; usernames are matched exactly.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include username, email, password and full_name.
                Optional: role (defaults to user).

        Returns:
            Created user instance

        Raises:
            ValueError: If the email or password is invalid
        """
        data = dict(user_data)
        try:
            email = User.validate_email_format(data.pop("email"))
            hashed_password = User.hash_password(data.pop("password"))

            create_data = {
                **data,
                "email": email,
                "hashed_password": hashed_password,
                "role": data.get("role") or UserRole.USER,
                "is_active": data.get("is_active", True),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.username} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.warning(f"User validation failed: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.get_by_field("email", email.lower().strip())

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self.get_by_field("username", username.strip())

    async def get_by_identifier(self, identifier: str) -> Optional[User]:
        """Look a user up by email when the identifier contains '@', else by username."""
        if "@" in identifier:
            return await self.get_by_email(identifier)
        return await self.get_by_username(identifier)

    async def authenticate_user(self, identifier: str, password: str) -> Optional[User]:
        """
        Authenticate user with email or username and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_identifier(identifier)

        if not user:
            logger.debug(f"Authentication failed: user {identifier} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {identifier}")
            return None

        logger.info(f"User authenticated successfully: {identifier}")
        return user

    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        return await self.get_by_field("stripe_customer_id", customer_id)

    async def get_by_stripe_subscription_id(self, subscription_id: str) -> Optional[User]:
        return await self.get_by_field("stripe_subscription_id", subscription_id)

    async def list_users(
        self,
        role: Optional[UserRole] = None,
        tier: Optional[SubscriptionTier] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """
        Paginated user listing for the admin dashboard.

        Returns:
            Tuple of (users list, total count)
        """
        try:
            conditions = []
            if role is not None:
                conditions.append(User.role == role)
            if tier is not None:
                conditions.append(User.subscription_tier == tier)
            if is_active is not None:
                conditions.append(User.is_active == is_active)
            if search:
                pattern = f"%{search}%"
                conditions.append(
                    or_(
                        User.username.ilike(pattern),
                        User.email.ilike(pattern),
                        User.full_name.ilike(pattern),
                    )
                )

            query = select(User)
            count_query = select(func.count(User.id))
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(User.created_at)).offset(skip).limit(limit)
            )
            users = list(result.scalars().all())

            logger.debug(f"Listed {len(users)} of {total} users")
            return users, total
        except Exception as e:
            logger.error(f"Failed to list users: {e}")
            raise

    async def get_message_recipients(self) -> List[User]:
        """Active agents and admins, the accounts a user may write to."""
        try:
            query = (
                select(User)
                .where(
                    and_(
                        User.role.in_([UserRole.AGENT, UserRole.ADMIN]),
                        User.is_active == True
                    )
                )
                .order_by(User.full_name)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get message recipients: {e}")
            raise

    async def get_user_statistics(self) -> Dict[str, Any]:
        """
        User statistics for the admin dashboard.

        Returns:
            Totals, counts by role and by subscription tier, and 30 day registrations
        """
        try:
            total_users = (await self.db.execute(select(func.count(User.id)))).scalar() or 0
            active_users = (
                await self.db.execute(select(func.count(User.id)).where(User.is_active == True))
            ).scalar() or 0

            role_result = await self.db.execute(
                select(User.role, func.count(User.id)).group_by(User.role)
            )
            users_by_role = {role.value: 0 for role in UserRole}
            users_by_role.update({row[0].value: row[1] for row in role_result.all()})

            tier_result = await self.db.execute(
                select(User.subscription_tier, func.count(User.id)).group_by(User.subscription_tier)
            )
            users_by_tier = {tier.value: 0 for tier in SubscriptionTier}
            users_by_tier.update({row[0].value: row[1] for row in tier_result.all()})

            cutoff = datetime.now(timezone.utc) - timedelta(days=30)
            recent_registrations = (
                await self.db.execute(select(func.count(User.id)).where(User.created_at >= cutoff))
            ).scalar() or 0

            return {
                "total_users": total_users,
                "active_users": active_users,
                "inactive_users": total_users - active_users,
                "users_by_role": users_by_role,
                "users_by_tier": users_by_tier,
                "recent_registrations": recent_registrations,
            }
        except Exception as e:
            logger.error(f"Failed to get user statistics: {e}")
            raise
