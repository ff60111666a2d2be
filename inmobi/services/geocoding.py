"""
Address lookup through OpenStreetMap Nominatim.
Answers are cached for the property cache TTL.
"""

from typing import Any, Dict, List, Optional
from inmobi.config import settings
from inmobi.services.cache import PropertyCache
from inmobi.services.external import ExternalServiceClient
import httpx
import logging

logger = logging.getLogger(__name__)

GEOCODE_STORE = "geocoding"

geocode_cache = PropertyCache(stores=(GEOCODE_STORE,))


def normalize_result(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Reduce a Nominatim place to display_name, latitude and longitude."""
    try:
        return {
            "display_name": raw["display_name"],
            "latitude": float(raw["lat"]),
            "longitude": float(raw["lon"]),
        }
    except (KeyError, TypeError, ValueError):
        return None


class GeocodingService(ExternalServiceClient):
    service_name = "Nominatim"

    def __init__(
        self,
        cache: Optional[PropertyCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            settings.nominatim_api_base,
            headers={"User-Agent": settings.nominatim_user_agent, "Accept": "application/json"},
            transport=transport,
        )
        self.cache = cache if cache is not None else geocode_cache

    async def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Forward geocode a free-text address."""
        query = query.strip()
        key = f"search:{query.lower()}:{limit}"

        async def fetch():
            logger.debug(f"Geocoding '{query}'")
            data = await self.get_json("/search", params={"q": query, "format": "json", "limit": limit})
            return [result for result in map(normalize_result, data if isinstance(data, list) else []) if result]

        return await self.cache.get_or_fetch(GEOCODE_STORE, key, fetch)

    async def reverse(self, latitude: float, longitude: float) -> List[Dict[str, Any]]:
        """Reverse geocode a coordinate; returns zero or one result."""
        key = f"reverse:{latitude:.6f}:{longitude:.6f}"

        async def fetch():
            logger.debug(f"Reverse geocoding {latitude},{longitude}")
            data = await self.get_json("/reverse", params={"lat": latitude, "lon": longitude, "format": "json"})
            if not isinstance(data, dict) or "error" in data:
                return []
            result = normalize_result(data)
            return [result] if result else []

        return await self.cache.get_or_fetch(GEOCODE_STORE, key, fetch)


def get_geocoding_service() -> GeocodingService:
    return GeocodingService()
