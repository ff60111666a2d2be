"""
Neighborhood repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from inmobi.repositories.base import BaseRepository
from inmobi.models.neighborhood import Neighborhood
from typing import List
import logging

logger = logging.getLogger(__name__)


class NeighborhoodRepository(BaseRepository[Neighborhood]):
    def __init__(self, db: AsyncSession):
        super().__init__(Neighborhood, db)

    async def get_ranked(self, limit: int = 5) -> List[Neighborhood]:
        """Neighborhoods by rank; unranked rows sort last by score."""
        try:
            result = await self.db.execute(
                select(Neighborhood)
                .order_by(
                    Neighborhood.rank.is_(None),
                    Neighborhood.rank,
                    Neighborhood.overall_score.desc()
                )
                .limit(limit)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get ranked neighborhoods: {e}")
            raise

    async def get_by_location(self, location: str) -> List[Neighborhood]:
        pattern = f"%{location.strip()}%"
        result = await self.db.execute(
            select(Neighborhood).where(
                or_(
                    Neighborhood.city.ilike(pattern),
                    Neighborhood.state.ilike(pattern),
                    Neighborhood.zip_code.ilike(pattern),
                    Neighborhood.name.ilike(pattern),
                )
            )
        )
        return list(result.scalars().all())

    async def get_by_city(self, city: str) -> List[Neighborhood]:
        result = await self.db.execute(
            select(Neighborhood).where(func.lower(Neighborhood.city) == city.lower())
        )
        return list(result.scalars().all())

    async def get_all(self) -> List[Neighborhood]:
        result = await self.db.execute(select(Neighborhood).order_by(Neighborhood.name))
        return list(result.scalars().all())
