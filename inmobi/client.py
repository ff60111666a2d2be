"""
Cached client for the Inmobi REST API, for scripts and integrations.

GET calls for listings and neighborhoods are served from a ``PropertyCache``
while fresh; writes go straight through and drop the affected entries.
"""

from typing import Any, Dict, List, Optional
import httpx
import logging

from inmobi.config import settings
from inmobi.services.cache import PropertyCache, PROPERTIES, FEATURED_PROPERTIES, NEIGHBORHOODS
from inmobi.services.external import ExternalServiceClient

logger = logging.getLogger(__name__)

API_STORE = "api"


class InmobiClient(ExternalServiceClient):
    """
    Args:
        base_url: Service root, e.g. ``https://api.inmobi.mobi``; the API prefix is added
        token: Bearer access token for authenticated calls
        cache: Cache to use; each client gets its own by default
        transport: Optional httpx transport, e.g. ``httpx.ASGITransport`` in tests
    """

    service_name = "Inmobi API"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        cache: Optional[PropertyCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(f"{base_url.rstrip('/')}{settings.api_v1_prefix}", transport=transport)
        self.cache = cache if cache is not None else PropertyCache(stores=(API_STORE,))
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.headers["Authorization"] = f"Bearer {token}"

    async def login(self, identifier: str, password: str) -> Dict[str, Any]:
        """Log in and keep the access token for later calls."""
        data = await self.post_json("/auth/login", {"identifier": identifier, "password": password})
        self.set_token(data["tokens"]["access_token"])
        logger.info(f"Inmobi client logged in as {identifier}")
        return data["user"]

    async def _cached_get(self, store: str, key: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        async def fetch():
            return await self.get_json(path, params=params)

        return await self.cache.get_or_fetch(store, key, fetch)

    async def get_property(self, property_id: str) -> Dict[str, Any]:
        return await self._cached_get(PROPERTIES, str(property_id), f"/properties/{property_id}")

    async def get_featured(self, limit: int = 6) -> List[Dict[str, Any]]:
        return await self._cached_get(
            FEATURED_PROPERTIES, f"featured:{limit}", "/properties/featured", {"limit": limit}
        )

    async def list_properties(self, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        page = await self._cached_get(
            API_STORE, f"properties:{limit}:{offset}", "/properties", {"limit": limit, "offset": offset}
        )
        # Listing pages also warm the detail store
        self.cache.add_or_update_bulk_data(PROPERTIES, page.get("properties", []))
        return page

    async def get_neighborhoods(self, limit: int = 5) -> List[Dict[str, Any]]:
        return await self._cached_get(NEIGHBORHOODS, f"ranked:{limit}", "/neighborhoods", {"limit": limit})

    async def search(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        """Searches are not cached; authenticated searches are saved server-side."""
        return await self.post_json("/properties/search", filters)

    async def create_property(self, data: Dict[str, Any]) -> Dict[str, Any]:
        created = await self.post_json("/properties", data)
        self.cache.clear_store(FEATURED_PROPERTIES)
        self.cache.clear_store(API_STORE)
        return created

    async def update_property(self, property_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.request("PUT", f"/properties/{property_id}", json=data)
        self.invalidate_property(property_id)
        return self.decode_json(response)

    async def delete_property(self, property_id: str) -> None:
        await self.request("DELETE", f"/properties/{property_id}")
        self.invalidate_property(property_id)

    def invalidate_property(self, property_id: str) -> None:
        self.cache.delete_data(PROPERTIES, str(property_id))
        self.cache.clear_store(FEATURED_PROPERTIES)
        self.cache.clear_store(API_STORE)
