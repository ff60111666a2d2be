"""
Dashboard schemas for the user, agent and admin surfaces.
"""

from pydantic import BaseModel
from typing import Any, Dict, List
from inmobi.schemas.favorite import FavoriteResponse
from inmobi.schemas.property import PropertyResponse
from inmobi.schemas.payment import SubscriptionResponse
from inmobi.schemas.tour import TourResponse


class UserDashboardCounts(BaseModel):
    favorites: int
    unread_messages: int
    drafts: int
    upcoming_tours: int
    saved_searches: int


class UserDashboardResponse(BaseModel):
    counts: UserDashboardCounts
    subscription: SubscriptionResponse
    recent_favorites: List[FavoriteResponse]


class AgentDashboardResponse(BaseModel):
    listing_statistics: Dict[str, Any]
    inquiries: Dict[str, int]
    upcoming_tours: List[TourResponse]
    recent_listings: List[PropertyResponse]


class AdminDashboardResponse(BaseModel):
    user_statistics: Dict[str, Any]
    property_statistics: Dict[str, Any]
    message_volume: Dict[str, int]
