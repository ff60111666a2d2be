"""
Property model for marketplace listings.
Handles listing data with address, location, pricing, media and ownership.
"""

from sqlalchemy import String, Text, Integer, Float, Boolean, JSON, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from inmobi.database import Base, isoformat
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from inmobi.models.user import User

MAX_PRICE = 1_000_000_000
MAX_ROOMS = 50


class PropertyType(str, enum.Enum):
    """Kinds of real estate that can be listed."""
    HOUSE = "house"
    CONDO = "condo"
    APARTMENT = "apartment"
    TOWNHOUSE = "townhouse"
    LAND = "land"


class Property(Base):
    """
    Property listing.
    Soft-deleted listings keep their row with ``is_active`` set to False.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    price: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Asking price in whole currency units"
    )

    # Address
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="USA")

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Attributes
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    bathrooms: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Number of bathrooms, halves allowed"
    )

    square_feet: Mapped[int] = mapped_column(Integer, nullable=False)

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        nullable=False,
        index=True
    )

    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_premium: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Premium listings are shown as featured"
    )

    features: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the listing is visible"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who listed the property"
    )

    owner: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}"

    def validate_all(self) -> None:
        """
        Run model-level sanity checks.

        Raises:
            ValueError: If any value is out of range
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Property price must be greater than 0")
        if self.price > MAX_PRICE:
            raise ValueError("Property price exceeds maximum allowed value")
        if self.bedrooms < 0 or self.bedrooms > MAX_ROOMS:
            raise ValueError(f"Number of bedrooms must be between 0 and {MAX_ROOMS}")
        if self.bathrooms < 0 or self.bathrooms > MAX_ROOMS:
            raise ValueError(f"Number of bathrooms must be between 0 and {MAX_ROOMS}")
        if self.square_feet is None or self.square_feet <= 0:
            raise ValueError("Square footage must be greater than 0")
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90 degrees")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180 degrees")

    def matches(self, filters: dict) -> bool:
        """
        Check the listing against notification subscription filters.

        Location is a case-insensitive substring of city, state, zip or address;
        bedrooms and bathrooms are minimums; price bounds are inclusive.
        """
        location = (filters.get("location") or "").strip().lower()
        if location:
            haystack = [self.city, self.state, self.zip_code, self.address]
            if not any(location in (value or "").lower() for value in haystack):
                return False
        min_price = filters.get("min_price")
        if min_price is not None and self.price < min_price:
            return False
        max_price = filters.get("max_price")
        if max_price is not None and self.price > max_price:
            return False
        property_type = filters.get("property_type")
        if property_type and self.property_type.value != str(getattr(property_type, "value", property_type)).lower():
            return False
        bedrooms = filters.get("bedrooms")
        if bedrooms is not None and self.bedrooms < bedrooms:
            return False
        bathrooms = filters.get("bathrooms")
        if bathrooms is not None and self.bathrooms < bathrooms:
            return False
        return True

    def to_dict(self, include_owner: bool = False) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_owner: Whether to include the owner's public profile.
                The relationship must already be loaded.
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "property_type": self.property_type.value,
            "year_built": self.year_built,
            "is_premium": self.is_premium,
            "features": list(self.features or []),
            "images": list(self.images or []),
            "is_active": self.is_active,
            "owner_id": str(self.owner_id),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

        if include_owner and self.owner is not None:
            result["owner"] = self.owner.to_public_dict()

        return result


# Composite indexes for the common search patterns
city_price_index = Index(
    "idx_properties_city_price",
    Property.city,
    Property.price,
    Property.is_active
)

type_active_index = Index(
    "idx_properties_type_active",
    Property.property_type,
    Property.is_active,
    Property.created_at.desc()
)

owner_active_index = Index(
    "idx_properties_owner_active",
    Property.owner_id,
    Property.is_active,
    Property.updated_at.desc()
)

coordinates_index = Index(
    "idx_properties_coordinates",
    Property.latitude,
    Property.longitude
)
