"""
Favorite repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc, delete
from inmobi.repositories.base import BaseRepository
from inmobi.models.favorite import Favorite
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class FavoriteRepository(BaseRepository[Favorite]):
    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def get_user_favorites(self, user_id: uuid.UUID, limit: Optional[int] = None) -> List[Favorite]:
        """A user's favorites, most recent first, with their listing loaded."""
        try:
            query = (
                select(Favorite)
                .where(Favorite.user_id == user_id)
                .order_by(desc(Favorite.created_at))
            )
            if limit:
                query = query.limit(limit)
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get favorites for user {user_id}: {e}")
            raise

    async def get_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Favorite]:
        try:
            query = select(Favorite).where(
                and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get favorite {user_id}/{property_id}: {e}")
            raise

    async def count_for_user(self, user_id: uuid.UUID) -> int:
        return await self.count({"user_id": user_id})

    async def get_favorite_property_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        result = await self.db.execute(select(Favorite.property_id).where(Favorite.user_id == user_id))
        return [row[0] for row in result.all()]

    async def remove(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Delete one favorite.

        Returns:
            True if a row was removed
        """
        try:
            result = await self.db.execute(
                delete(Favorite).where(
                    and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
                )
            )
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove favorite {user_id}/{property_id}: {e}")
            raise
