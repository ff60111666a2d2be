"""
Message model for conversations between users and agents.
"""

from sqlalchemy import String, Text, ForeignKey, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from inmobi.database import Base, isoformat
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from inmobi.models.user import User


class MessageStatus(str, enum.Enum):
    """Lifecycle of a received message."""
    UNREAD = "unread"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class Message(Base):
    """
    Direct message from one user to another, optionally about a listing.
    """

    __tablename__ = "messages"

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[MessageStatus] = mapped_column(
        SQLEnum(MessageStatus),
        nullable=False,
        default=MessageStatus.UNREAD,
        index=True
    )

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    recipient: Mapped["User"] = relationship("User", foreign_keys=[recipient_id], lazy="selectin")

    def to_dict(self, include_participants: bool = False) -> dict:
        result = {
            "id": str(self.id),
            "sender_id": str(self.sender_id),
            "recipient_id": str(self.recipient_id),
            "property_id": str(self.property_id) if self.property_id else None,
            "subject": self.subject,
            "content": self.content,
            "status": self.status.value,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_participants:
            result["sender"] = self.sender.to_public_dict() if self.sender else None
            result["recipient"] = self.recipient.to_public_dict() if self.recipient else None
        return result


recipient_status_index = Index(
    "idx_messages_recipient_status",
    Message.recipient_id,
    Message.status
)
