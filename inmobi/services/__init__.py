"""
Service layer for business logic implementation.
Contains services for accounts, listings, messaging, payments and the provider integrations.
"""

from .auth import AuthService
from .property import PropertyService
from .error_handler import ErrorHandlerService
from .cache import PropertyCache
from .notifications import NotificationHub

__all__ = [
    "AuthService",
    "PropertyService",
    "ErrorHandlerService",
    "PropertyCache",
    "NotificationHub",
]
