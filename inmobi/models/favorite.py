"""
Favorite model linking users to saved listings.
"""

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from inmobi.database import Base, isoformat
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from inmobi.models.property import Property


class Favorite(Base):
    """A listing saved by a user. Each (user, property) pair appears once."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property: Mapped["Property"] = relationship("Property", lazy="selectin")

    def to_dict(self, include_property: bool = True) -> dict:
        result = {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "property_id": str(self.property_id),
            "created_at": isoformat(self.created_at),
        }
        if include_property and self.property is not None:
            result["property"] = self.property.to_dict(include_owner=True)
        return result
