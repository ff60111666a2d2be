"""
User model with authentication, role and subscription management.
Handles marketplace accounts for home seekers, real estate agents and administrators.
"""

from sqlalchemy import String, Text, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from inmobi.database import Base, isoformat
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
from datetime import datetime
from typing import Optional
import enum
import uuid

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    USER = "user"
    AGENT = "agent"
    ADMIN = "admin"


class SubscriptionTier(str, enum.Enum):
    """Subscription tiers gating premium features."""
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class User(Base):
    """
    User model for authentication and authorization.
    Carries the role, subscription state and Stripe identifiers of an account.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Public handle - must be unique"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.USER,
        index=True
    )

    # Subscription state mirrored from Stripe
    subscription_tier: Mapped[SubscriptionTier] = mapped_column(
        SQLEnum(SubscriptionTier),
        nullable=False,
        default=SubscriptionTier.FREE,
        index=True
    )

    subscription_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    # Profile
    profile_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    preferred_language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default="en-GB"
    )

    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the user account is active"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.

        Raises:
            ValueError: If the password is shorter than 8 characters
        """
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT

    @property
    def has_premium_access(self) -> bool:
        """Premium and enterprise subscribers, plus admins, unlock premium features."""
        return self.is_admin or self.subscription_tier in (SubscriptionTier.PREMIUM, SubscriptionTier.ENTERPRISE)

    def can_manage(self, owner_id: uuid.UUID) -> bool:
        """
        Check if user can manage a resource owned by ``owner_id``.

        Admins can manage everything; everyone else only their own resources.
        """
        if self.is_admin:
            return True
        return self.id == owner_id

    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding sensitive data).

        Returns:
            Dictionary representation of user
        """
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value,
            "subscription_tier": self.subscription_tier.value,
            "subscription_status": self.subscription_status,
            "subscription_expires_at": isoformat(self.subscription_expires_at),
            "profile_image": self.profile_image,
            "bio": self.bio,
            "phone": self.phone,
            "preferred_language": self.preferred_language,
            "is_verified": self.is_verified,
            "is_active": self.is_active,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        """Subset safe to show to other users (message senders, listing owners)."""
        return {
            "id": str(self.id),
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role.value,
            "profile_image": self.profile_image,
            "is_verified": self.is_verified,
        }
