"""
Database models for the Inmobi marketplace.
"""

from inmobi.models.user import User, UserRole, SubscriptionTier
from inmobi.models.property import Property, PropertyType
from inmobi.models.favorite import Favorite
from inmobi.models.message import Message, MessageStatus
from inmobi.models.draft import PropertyDraft
from inmobi.models.search_history import SearchHistory
from inmobi.models.neighborhood import Neighborhood
from inmobi.models.tour import PropertyTour, TourStatus, TourType
from inmobi.models.image import ImageAsset

__all__ = [
    "User",
    "UserRole",
    "SubscriptionTier",
    "Property",
    "PropertyType",
    "Favorite",
    "Message",
    "MessageStatus",
    "PropertyDraft",
    "SearchHistory",
    "Neighborhood",
    "PropertyTour",
    "TourStatus",
    "TourType",
    "ImageAsset",
]
