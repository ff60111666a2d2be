"""
Favorites with the free-tier limit.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.favorite import Favorite
from inmobi.models.user import User
from inmobi.repositories.favorite import FavoriteRepository
from inmobi.repositories.property import PropertyRepository
from inmobi.utils.exceptions import (
    DuplicateResourceError,
    NotFoundError,
    PropertyNotFoundError,
    ResourceLimitExceededError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

FREE_TIER_FAVORITES_LIMIT = 5


class FavoriteService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def list_favorites(self, current_user: User) -> List[Favorite]:
        return await self.favorite_repo.get_user_favorites(current_user.id)

    async def add_favorite(self, property_id: uuid.UUID, current_user: User) -> Favorite:
        """
        Raises:
            PropertyNotFoundError: If the listing does not exist or is inactive
            DuplicateResourceError: If it is already a favorite
            ResourceLimitExceededError: If a free-tier user already has five favorites
        """
        if await self.property_repo.get_active(property_id) is None:
            raise PropertyNotFoundError(str(property_id))

        if await self.favorite_repo.get_favorite(current_user.id, property_id):
            raise DuplicateResourceError("Favorite", str(property_id))

        if not current_user.has_premium_access:
            count = await self.favorite_repo.count_for_user(current_user.id)
            if count >= FREE_TIER_FAVORITES_LIMIT:
                logger.warning(f"User {current_user.id} hit the favorites limit")
                raise ResourceLimitExceededError("favorites", FREE_TIER_FAVORITES_LIMIT)

        favorite = await self.favorite_repo.create({"user_id": current_user.id, "property_id": property_id})
        logger.info(f"User {current_user.id} favorited property {property_id}")
        return favorite

    async def remove_favorite(self, property_id: uuid.UUID, current_user: User) -> None:
        if not await self.favorite_repo.remove(current_user.id, property_id):
            raise NotFoundError("Favorite", str(property_id))
        logger.info(f"User {current_user.id} removed favorite {property_id}")
