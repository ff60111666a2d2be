"""
JWT helpers for access and refresh tokens.
Tokens are HS256-signed and carry a ``type`` claim so a refresh token can never be used as an access token.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from inmobi.config import settings
from inmobi.models.user import UserRole
import uuid


class TokenPayload:
    """Decoded JWT claims."""

    def __init__(self, user_id: str, email: str, role: Optional[str], token_type: str, exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.token_type = token_type
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data.get("role"),  # absent on refresh tokens
            token_type=data["type"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _encode(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims.update({"exp": now + expires_delta, "iat": now})
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "type": "access",
    }
    return _encode(claims, expires_delta or timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT refresh token (7 days by default)."""
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": "refresh",
    }
    return _encode(claims, expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days))


def verify_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type ("access" or "refresh")

    Returns:
        Decoded payload

    Raises:
        ExpiredSignatureError: If the token has expired
        JWTError: If the token is malformed, badly signed or of the wrong type
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm]
    )

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")

    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)
