"""
Aggregates for the user, agent and admin dashboards.
"""

from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.user import User
from inmobi.repositories.draft import DraftRepository
from inmobi.repositories.favorite import FavoriteRepository
from inmobi.repositories.message import MessageRepository
from inmobi.repositories.property import PropertyRepository
from inmobi.repositories.search_history import SearchHistoryRepository
from inmobi.repositories.user import UserRepository
from inmobi.services.payment import PaymentService
from inmobi.services.tour import TourService
import logging

logger = logging.getLogger(__name__)

RECENT_ITEMS = 5
UPCOMING_TOURS = 10


class DashboardService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.message_repo = MessageRepository(db_session)
        self.draft_repo = DraftRepository(db_session)
        self.search_repo = SearchHistoryRepository(db_session)
        self.tour_service = TourService(db_session)
        self.payment_service = PaymentService(db_session)

    async def get_user_dashboard(self, current_user: User) -> Dict[str, Any]:
        upcoming = await self.tour_service.get_upcoming(user_id=current_user.id)
        recent_favorites = await self.favorite_repo.get_user_favorites(current_user.id, limit=RECENT_ITEMS)

        return {
            "counts": {
                "favorites": await self.favorite_repo.count_for_user(current_user.id),
                "unread_messages": await self.message_repo.count_unread(current_user.id),
                "drafts": await self.draft_repo.count({"user_id": current_user.id}),
                "upcoming_tours": len(upcoming),
                "saved_searches": await self.search_repo.count({"user_id": current_user.id}),
            },
            "subscription": self.payment_service.get_subscription(current_user),
            "recent_favorites": [favorite.to_dict() for favorite in recent_favorites],
        }

    async def get_agent_dashboard(self, current_user: User) -> Dict[str, Any]:
        """Listing figures, inquiries and tours of the agent's own listings."""
        recent_listings, _ = await self.property_repo.get_properties_by_owner(
            current_user.id, skip=0, limit=RECENT_ITEMS, include_inactive=True
        )
        upcoming = await self.tour_service.get_upcoming(agent_id=current_user.id, limit=UPCOMING_TOURS)

        return {
            "listing_statistics": await self.property_repo.get_property_statistics(owner_id=current_user.id),
            "inquiries": await self.message_repo.count_by_status(current_user.id),
            "upcoming_tours": [tour.to_dict() for tour in upcoming],
            "recent_listings": [prop.to_dict(include_owner=True) for prop in recent_listings],
        }

    async def get_admin_dashboard(self) -> Dict[str, Any]:
        logger.debug("Building admin dashboard")
        return {
            "user_statistics": await self.user_repo.get_user_statistics(),
            "property_statistics": await self.property_repo.get_property_statistics(),
            "message_volume": await self.message_repo.get_message_volume(),
        }
