"""
Process-local read-through cache for property data.

Entries live in named stores and carry the time they were written. Reads
inside the TTL are served from memory; ``get_or_fetch`` refetches once an
entry is older than the TTL. There is no eviction, and callers clear a store
after their own writes.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
from inmobi.config import settings
import logging
import time

logger = logging.getLogger(__name__)

PROPERTIES = "properties"
FEATURED_PROPERTIES = "featured_properties"
NEIGHBORHOODS = "neighborhoods"
SEARCH_HISTORY = "search_history"
USER_PREFERENCES = "user_preferences"

STORE_NAMES = (PROPERTIES, FEATURED_PROPERTIES, NEIGHBORHOODS, SEARCH_HISTORY, USER_PREFERENCES)


@dataclass
class CacheEntry:
    key: str
    data: Any
    timestamp: float


class PropertyCache:
    """
    TTL cache keyed by store name and key.

    Args:
        ttl_seconds: Default maximum age of an entry
        clock: Returns the current time in seconds; tests pass a fake clock
        stores: Extra store names to create alongside the default ones
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        stores: Iterable[str] = ()
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self.clock = clock
        self._stores: Dict[str, Dict[str, CacheEntry]] = {
            name: {} for name in (*STORE_NAMES, *stores)
        }

    def _store(self, store: str) -> Dict[str, CacheEntry]:
        try:
            return self._stores[store]
        except KeyError:
            raise KeyError(f"Unknown cache store: {store}")

    def get_data(self, store: str, key: str) -> Optional[CacheEntry]:
        return self._store(store).get(key)

    def get_all_data(self, store: str) -> List[CacheEntry]:
        return list(self._store(store).values())

    def add_or_update_data(self, store: str, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(key=key, data=data, timestamp=self.clock())
        self._store(store)[key] = entry
        return entry

    def add_or_update_bulk_data(self, store: str, items: Iterable[Dict[str, Any]]) -> int:
        """
        Store several records at once, keyed by their ``id``.

        Returns:
            Number of records written

        Raises:
            ValueError: If an item has no ``id``
        """
        target = self._store(store)
        now = self.clock()
        count = 0
        for item in items:
            key = item.get("id")
            if key is None:
                raise ValueError("Bulk cache items must carry an 'id'")
            target[str(key)] = CacheEntry(key=str(key), data=item, timestamp=now)
            count += 1
        return count

    def delete_data(self, store: str, key: str) -> bool:
        return self._store(store).pop(key, None) is not None

    def clear_store(self, store: str) -> None:
        self._store(store).clear()
        logger.debug(f"Cleared cache store {store}")

    def clear_all(self) -> None:
        for entries in self._stores.values():
            entries.clear()

    def get_most_recent_data(self, store: str) -> Optional[CacheEntry]:
        entries = self._store(store).values()
        if not entries:
            return None
        return max(entries, key=lambda entry: entry.timestamp)

    def needs_refresh(self, timestamp: float, max_age: Optional[float] = None) -> bool:
        """True once an entry written at ``timestamp`` is older than ``max_age``."""
        max_age = self.ttl_seconds if max_age is None else max_age
        return self.clock() - timestamp > max_age

    async def get_or_fetch(
        self,
        store: str,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        max_age: Optional[float] = None
    ) -> Any:
        """
        Return the cached data while fresh, otherwise await ``fetcher`` and cache its result.

        A fetcher returning None is not cached.
        """
        entry = self.get_data(store, key)
        if entry is not None and not self.needs_refresh(entry.timestamp, max_age):
            logger.debug(f"Cache hit {store}:{key}")
            return entry.data

        logger.debug(f"Cache miss {store}:{key}")
        data = await fetcher()
        if data is not None:
            self.add_or_update_data(store, key, data)
        return data


property_cache = PropertyCache()


def get_property_cache() -> PropertyCache:
    """Dependency returning the process-wide cache."""
    return property_cache
