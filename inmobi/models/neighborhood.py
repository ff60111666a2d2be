"""
Neighborhood model with livability scores and growth figures.
"""

from sqlalchemy import String, Text, Integer, Float, JSON
from sqlalchemy.orm import Mapped, mapped_column
from inmobi.database import Base, isoformat
from typing import List, Optional


class Neighborhood(Base):
    """Neighborhood insight record, ranked by overall score."""

    __tablename__ = "neighborhoods"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # 0-100 scores
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    safety_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    school_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    transit_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    walkability_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    growth: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="Annual price growth as a fraction, e.g. 0.045"
    )
    median_home_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    highlights: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "overall_score": self.overall_score,
            "rank": self.rank,
            "safety_score": self.safety_score,
            "school_score": self.school_score,
            "transit_score": self.transit_score,
            "walkability_score": self.walkability_score,
            "growth": self.growth,
            "median_home_price": self.median_home_price,
            "description": self.description,
            "highlights": list(self.highlights or []),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
