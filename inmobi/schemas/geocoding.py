"""
Geocoding schemas.
"""

from pydantic import BaseModel
from typing import List


class GeocodeResult(BaseModel):
    display_name: str
    latitude: float
    longitude: float


class GeocodeResponse(BaseModel):
    query: str
    results: List[GeocodeResult]
