"""
PropertyTour model for scheduled viewings.
"""

from sqlalchemy import String, Text, Integer, Date, ForeignKey, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from inmobi.database import Base, isoformat
from datetime import date
from typing import Optional, TYPE_CHECKING
import enum
import uuid

if TYPE_CHECKING:
    from inmobi.models.property import Property


class TourStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class TourType(str, enum.Enum):
    IN_PERSON = "in-person"
    VIRTUAL = "virtual"


class PropertyTour(Base):
    """
    A viewing booked by a user for a listing.
    ``agent_id`` is the listing owner at booking time.
    """

    __tablename__ = "property_tours"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    tour_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    tour_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        comment="Start time in HH:MM"
    )

    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[TourStatus] = mapped_column(
        SQLEnum(TourStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TourStatus.PENDING,
        index=True
    )

    tour_type: Mapped[TourType] = mapped_column(
        SQLEnum(TourType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TourType.IN_PERSON
    )

    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    additional_attendees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    property: Mapped["Property"] = relationship("Property", lazy="selectin")

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user_id, self.agent_id)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "user_id": str(self.user_id),
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "tour_date": self.tour_date.isoformat(),
            "tour_time": self.tour_time,
            "duration": self.duration,
            "notes": self.notes,
            "status": self.status.value,
            "tour_type": self.tour_type.value,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "additional_attendees": self.additional_attendees,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


property_date_index = Index(
    "idx_tours_property_date",
    PropertyTour.property_id,
    PropertyTour.tour_date
)
