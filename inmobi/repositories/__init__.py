"""
Repository layer for data access operations.
"""

from inmobi.repositories.base import BaseRepository
from inmobi.repositories.user import UserRepository
from inmobi.repositories.property import PropertyRepository, PropertySearchFilters, haversine_km
from inmobi.repositories.favorite import FavoriteRepository
from inmobi.repositories.message import MessageRepository
from inmobi.repositories.draft import DraftRepository
from inmobi.repositories.search_history import SearchHistoryRepository
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.repositories.tour import TourRepository
from inmobi.repositories.image import ImageRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "haversine_km",
    "FavoriteRepository",
    "MessageRepository",
    "DraftRepository",
    "SearchHistoryRepository",
    "NeighborhoodRepository",
    "TourRepository",
    "ImageRepository",
]
