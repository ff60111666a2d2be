"""
Message schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime
import uuid
from inmobi.models.message import MessageStatus
from inmobi.schemas.user import PublicUserResponse


class MessageCreate(BaseModel):
    recipient_id: uuid.UUID
    property_id: Optional[uuid.UUID] = None
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("subject", "content")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Value cannot be blank")
        return v.strip()


class MessageStatusUpdate(BaseModel):
    """A recipient may only move a message to read, replied or archived."""

    status: Literal["read", "replied", "archived"]


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    property_id: Optional[str] = None
    subject: str
    content: str
    status: MessageStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sender: Optional[PublicUserResponse] = None
    recipient: Optional[PublicUserResponse] = None


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    total: int
    role: Literal["sent", "received"]
