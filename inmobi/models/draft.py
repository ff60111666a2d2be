"""
PropertyDraft model for partially completed listing forms.
"""

from sqlalchemy import String, JSON, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from inmobi.database import Base, isoformat
from datetime import datetime
from typing import Any, Dict
import uuid


class PropertyDraft(Base):
    """A saved listing form that can be resumed and published later."""

    __tablename__ = "property_drafts"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    form_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "name": self.name,
            "form_data": dict(self.form_data or {}),
            "last_updated": isoformat(self.last_updated),
            "created_at": isoformat(self.created_at),
        }
