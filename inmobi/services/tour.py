"""
Tour scheduling: half-hour viewing slots, bookings and their lifecycle.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.tour import PropertyTour, TourStatus
from inmobi.models.user import User
from inmobi.repositories.property import PropertyRepository
from inmobi.repositories.tour import TourRepository
from inmobi.schemas.tour import TourCreate, TourUpdate
from inmobi.utils.exceptions import (
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
    PropertyNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

DAY_START = "09:00"
DAY_END = "17:00"
SLOT_MINUTES = 30

# Status changes reserved for the listing's agent or an admin
AGENT_STATUSES = {TourStatus.CONFIRMED, TourStatus.COMPLETED}


def build_slots(start: str = DAY_START, end: str = DAY_END, step_minutes: int = SLOT_MINUTES) -> List[str]:
    """Start times from ``start`` up to, but not including, ``end``."""
    current = datetime.strptime(start, "%H:%M")
    finish = datetime.strptime(end, "%H:%M")
    slots = []
    while current < finish:
        slots.append(current.strftime("%H:%M"))
        current += timedelta(minutes=step_minutes)
    return slots


ALL_SLOTS = build_slots()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _today() -> date:
    return _now().date()


def slot_has_started(tour_date: date, tour_time: str, now: datetime) -> bool:
    """True for slots on past days and for today's slots at or before ``now``."""
    today = now.date()
    if tour_date != today:
        return tour_date < today
    return tour_time <= now.strftime("%H:%M")


class TourService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.tour_repo = TourRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def get_available_slots(self, property_id: uuid.UUID, tour_date: date) -> List[str]:
        """
        Free slots of an active listing on ``tour_date`` that have not started yet.

        Raises:
            PropertyNotFoundError: If the listing does not exist or is inactive
        """
        if await self.property_repo.get_active(property_id) is None:
            raise PropertyNotFoundError(str(property_id))
        now = _now()
        if tour_date < now.date():
            return []
        booked = await self.tour_repo.get_booked_times(property_id, tour_date)
        return [
            slot for slot in ALL_SLOTS
            if slot not in booked and not slot_has_started(tour_date, slot, now)
        ]

    async def _check_slot(
        self,
        property_id: uuid.UUID,
        tour_date: date,
        tour_time: str,
        exclude_tour_id: Optional[uuid.UUID] = None
    ) -> None:
        if tour_time not in ALL_SLOTS:
            raise BadRequestError(f"Tours start on the half hour between {DAY_START} and {DAY_END}")
        if slot_has_started(tour_date, tour_time, _now()):
            raise BadRequestError("Tours cannot be booked in the past")
        booked = await self.tour_repo.get_booked_times(property_id, tour_date, exclude_tour_id)
        if tour_time in booked:
            raise BadRequestError("Selected time slot is not available")

    async def book_tour(self, property_id: uuid.UUID, data: TourCreate, current_user: User) -> PropertyTour:
        """
        Book a viewing; the listing owner becomes the tour's agent.

        Raises:
            PropertyNotFoundError: If the listing does not exist or is inactive
            BadRequestError: If the slot is invalid or taken
        """
        prop = await self.property_repo.get_active(property_id)
        if prop is None:
            raise PropertyNotFoundError(str(property_id))

        await self._check_slot(property_id, data.tour_date, data.tour_time)

        tour = await self.tour_repo.create({
            **data.model_dump(),
            "property_id": property_id,
            "user_id": current_user.id,
            "agent_id": prop.owner_id,
            "status": TourStatus.PENDING,
        })
        logger.info(f"Tour {tour.id} booked for property {property_id} on {data.tour_date} {data.tour_time}")
        return tour

    async def get_tour(self, tour_id: uuid.UUID, current_user: User) -> PropertyTour:
        """
        Raises:
            NotFoundError: If the tour does not exist
            InsufficientPermissionsError: If the caller is not a participant or an admin
        """
        tour = await self.tour_repo.get_by_id(tour_id)
        if tour is None:
            raise NotFoundError("Tour", str(tour_id))
        if not (current_user.is_admin or tour.is_participant(current_user.id)):
            raise InsufficientPermissionsError("access this tour")
        return tour

    async def list_user_tours(self, current_user: User) -> List[PropertyTour]:
        return await self.tour_repo.get_user_tours(current_user.id)

    async def list_agent_tours(self, current_user: User) -> List[PropertyTour]:
        """Admins see every tour; agents see the tours of their listings."""
        return await self.tour_repo.get_agent_tours(None if current_user.is_admin else current_user.id)

    async def update_tour(self, tour_id: uuid.UUID, data: TourUpdate, current_user: User) -> PropertyTour:
        """
        Reschedule or change a tour.

        Keeping the tour's own slot is allowed. Moving to a new date or time
        marks it rescheduled unless a status is given.
        """
        tour = await self.get_tour(tour_id, current_user)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return tour

        is_agent = current_user.is_admin or current_user.id == tour.agent_id
        new_status = update_data.get("status")
        if new_status in AGENT_STATUSES and not is_agent:
            raise InsufficientPermissionsError(f"mark this tour {new_status.value}")

        new_date = update_data.get("tour_date", tour.tour_date)
        new_time = update_data.get("tour_time", tour.tour_time)
        if (new_date, new_time) != (tour.tour_date, tour.tour_time):
            await self._check_slot(tour.property_id, new_date, new_time, exclude_tour_id=tour.id)
            update_data.setdefault("status", TourStatus.RESCHEDULED)

        tour = await self.tour_repo.update_instance(tour, update_data)
        logger.info(f"Tour {tour_id} updated by user {current_user.id}")
        return tour

    async def cancel_tour(self, tour_id: uuid.UUID, current_user: User) -> PropertyTour:
        tour = await self.get_tour(tour_id, current_user)
        if tour.status == TourStatus.CANCELLED:
            raise BadRequestError("Tour is already cancelled")
        tour = await self.tour_repo.update_instance(tour, {"status": TourStatus.CANCELLED})
        logger.info(f"Tour {tour_id} cancelled by user {current_user.id}")
        return tour

    async def get_upcoming(
        self,
        user_id: Optional[uuid.UUID] = None,
        agent_id: Optional[uuid.UUID] = None,
        limit: Optional[int] = None
    ) -> List[PropertyTour]:
        return await self.tour_repo.get_upcoming(_today(), user_id=user_id, agent_id=agent_id, limit=limit)
