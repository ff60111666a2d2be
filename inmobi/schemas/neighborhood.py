"""
Neighborhood and market trend schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class NeighborhoodResponse(BaseModel):
    id: str
    name: str
    city: str
    state: str
    zip_code: str
    latitude: float
    longitude: float
    overall_score: int = Field(..., ge=0, le=100)
    rank: Optional[int] = None
    safety_score: Optional[int] = None
    school_score: Optional[int] = None
    transit_score: Optional[int] = None
    walkability_score: Optional[int] = None
    growth: Optional[float] = None
    median_home_price: Optional[int] = None
    description: Optional[str] = None
    highlights: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TrendPoint(BaseModel):
    period: str = Field(..., examples=["2026-03"])
    median_price: int
    listings: int


class MarketForecast(BaseModel):
    annual_growth_rate: float
    next_year_median_price: int
    outlook: str = Field(..., examples=["rising"])


class MarketTrendsResponse(BaseModel):
    """Market figures computed from active listings in a location."""

    location: str
    median_price: int
    average_price_per_sqft: float
    inventory_count: int
    monthly: List[TrendPoint] = Field(..., description="Twelve monthly points, oldest first")
    yearly: List[TrendPoint] = Field(..., description="Five yearly points, oldest first")
    forecast: MarketForecast
