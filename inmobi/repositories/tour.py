"""
Property tour repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, asc
from inmobi.repositories.base import BaseRepository
from inmobi.models.tour import PropertyTour, TourStatus
from datetime import date
from typing import List, Optional, Set
import uuid
import logging

logger = logging.getLogger(__name__)


class TourRepository(BaseRepository[PropertyTour]):
    def __init__(self, db: AsyncSession):
        super().__init__(PropertyTour, db)

    async def get_booked_times(
        self,
        property_id: uuid.UUID,
        tour_date: date,
        exclude_tour_id: Optional[uuid.UUID] = None
    ) -> Set[str]:
        """Start times held by non-cancelled tours of a listing on one day."""
        try:
            query = select(PropertyTour.tour_time).where(
                and_(
                    PropertyTour.property_id == property_id,
                    PropertyTour.tour_date == tour_date,
                    PropertyTour.status != TourStatus.CANCELLED,
                )
            )
            if exclude_tour_id:
                query = query.where(PropertyTour.id != exclude_tour_id)
            result = await self.db.execute(query)
            return {row[0] for row in result.all()}
        except Exception as e:
            logger.error(f"Failed to get booked times for property {property_id}: {e}")
            raise

    async def get_user_tours(self, user_id: uuid.UUID) -> List[PropertyTour]:
        result = await self.db.execute(
            select(PropertyTour)
            .where(PropertyTour.user_id == user_id)
            .order_by(asc(PropertyTour.tour_date), asc(PropertyTour.tour_time))
        )
        return list(result.scalars().all())

    async def get_agent_tours(self, agent_id: Optional[uuid.UUID] = None) -> List[PropertyTour]:
        """Tours assigned to ``agent_id``, or every tour when it is None."""
        query = select(PropertyTour)
        if agent_id:
            query = query.where(PropertyTour.agent_id == agent_id)
        result = await self.db.execute(
            query.order_by(asc(PropertyTour.tour_date), asc(PropertyTour.tour_time))
        )
        return list(result.scalars().all())

    async def get_upcoming(
        self,
        from_date: date,
        user_id: Optional[uuid.UUID] = None,
        agent_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None
    ) -> List[PropertyTour]:
        """Pending and confirmed tours on or after ``from_date``."""
        try:
            conditions = [
                PropertyTour.tour_date >= from_date,
                or_(
                    PropertyTour.status == TourStatus.PENDING,
                    PropertyTour.status == TourStatus.CONFIRMED,
                    PropertyTour.status == TourStatus.RESCHEDULED,
                ),
            ]
            if user_id:
                conditions.append(PropertyTour.user_id == user_id)
            if agent_id:
                conditions.append(PropertyTour.agent_id == agent_id)
            query = (
                select(PropertyTour)
                .where(and_(*conditions))
                .order_by(asc(PropertyTour.tour_date), asc(PropertyTour.tour_time))
            )
            if limit:
                query = query.limit(limit)
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get upcoming tours: {e}")
            raise
