"""
SearchHistory model recording the filters of authenticated searches.
"""

from sqlalchemy import JSON, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from inmobi.database import Base, isoformat
from typing import Any, Dict
import uuid


class SearchHistory(Base):
    """One saved search: a JSON copy of the filters that were applied."""

    __tablename__ = "search_history"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    query: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "query": dict(self.query or {}),
            "created_at": isoformat(self.created_at),
        }
