"""
Property tour schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
import re
from inmobi.models.tour import TourStatus, TourType

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_format(v: Optional[str]) -> Optional[str]:
    if v is not None and not TIME_PATTERN.match(v):
        raise ValueError("Time must use the HH:MM format")
    return v


class TourCreate(BaseModel):
    tour_date: date
    tour_time: str = Field(..., examples=["10:30"])
    tour_type: TourType = TourType.IN_PERSON
    notes: Optional[str] = Field(None, max_length=2000)
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[EmailStr] = None
    additional_attendees: int = Field(0, ge=0, le=20)

    @field_validator("tour_time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_format(v)


class TourUpdate(BaseModel):
    """Reschedule or change a tour. Only the listing's agent or an admin may confirm or complete it."""

    tour_date: Optional[date] = None
    tour_time: Optional[str] = None
    tour_type: Optional[TourType] = None
    status: Optional[TourStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[EmailStr] = None
    additional_attendees: Optional[int] = Field(None, ge=0, le=20)

    @field_validator("tour_time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_format(v)


class TourResponse(BaseModel):
    id: str
    property_id: str
    user_id: str
    agent_id: Optional[str] = None
    tour_date: date
    tour_time: str
    duration: int
    notes: Optional[str] = None
    status: TourStatus
    tour_type: TourType
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    additional_attendees: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TourSlotsResponse(BaseModel):
    property_id: str
    date: date
    slots: List[str]
