"""
Neighborhood rankings and market trend analytics.
"""

from datetime import datetime, timezone
from statistics import median
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.property import Property
from inmobi.models.user import User
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.repositories.property import PropertyRepository
from inmobi.services.cache import PropertyCache, NEIGHBORHOODS, get_property_cache
from inmobi.utils.exceptions import BadRequestError, NotFoundError, PremiumFeatureRequiredError
import uuid
import logging

logger = logging.getLogger(__name__)

DEFAULT_ANNUAL_GROWTH = 0.03
MONTHLY_POINTS = 12
YEARLY_POINTS = 5


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def outlook_for(growth: float) -> str:
    if growth > 0.01:
        return "rising"
    if growth < -0.01:
        return "declining"
    return "stable"


class MarketService:
    """
    Neighborhood lists are cached; trends are recomputed from active listings on each call.
    """

    def __init__(self, db_session: AsyncSession, cache: Optional[PropertyCache] = None):
        self.db = db_session
        self.neighborhood_repo = NeighborhoodRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.cache = cache if cache is not None else get_property_cache()

    async def get_neighborhoods(self, limit: int = 5) -> List[Dict[str, Any]]:
        async def fetch():
            return [n.to_dict() for n in await self.neighborhood_repo.get_ranked(limit)]

        return await self.cache.get_or_fetch(NEIGHBORHOODS, f"ranked:{limit}", fetch)

    async def get_neighborhood(self, neighborhood_id: uuid.UUID) -> Dict[str, Any]:
        neighborhood = await self.neighborhood_repo.get_by_id(neighborhood_id)
        if neighborhood is None:
            raise NotFoundError("Neighborhood", str(neighborhood_id))
        return neighborhood.to_dict()

    async def _growth_for(self, location: str) -> float:
        values = [n.growth for n in await self.neighborhood_repo.get_by_location(location) if n.growth is not None]
        return sum(values) / len(values) if values else DEFAULT_ANNUAL_GROWTH

    @staticmethod
    def _point(period: str, prices: List[int], fallback: float) -> Dict[str, Any]:
        return {
            "period": period,
            "median_price": int(round(median(prices))) if prices else int(round(fallback)),
            "listings": len(prices),
        }

    async def get_trends(self, location: Optional[str], current_user: User) -> Dict[str, Any]:
        """
        Market figures for listings matching ``location``.

        Periods without new listings are back-filled by discounting the current
        median with the location's growth rate.

        Raises:
            PremiumFeatureRequiredError: If the caller has no premium access
            BadRequestError: If no location is given
        """
        if not current_user.has_premium_access:
            raise PremiumFeatureRequiredError("Market trends")
        if not location or not location.strip():
            raise BadRequestError("location is required")
        location = location.strip()

        listings: List[Property] = await self.property_repo.get_active_in_location(location)
        growth = await self._growth_for(location)

        prices = [p.price for p in listings]
        current_median = median(prices) if prices else 0
        per_sqft = [p.price / p.square_feet for p in listings if p.square_feet]
        average_per_sqft = sum(per_sqft) / len(per_sqft) if per_sqft else 0.0

        now = datetime.now(timezone.utc)

        monthly = []
        for months_ago in range(MONTHLY_POINTS - 1, -1, -1):
            year, month = _shift_month(now.year, now.month, -months_ago)
            period_prices = [
                p.price for p in listings
                if p.created_at and p.created_at.year == year and p.created_at.month == month
            ]
            fallback = current_median / (1 + growth) ** (months_ago / 12)
            monthly.append(self._point(f"{year:04d}-{month:02d}", period_prices, fallback))

        yearly = []
        for years_ago in range(YEARLY_POINTS - 1, -1, -1):
            year = now.year - years_ago
            period_prices = [p.price for p in listings if p.created_at and p.created_at.year == year]
            fallback = current_median / (1 + growth) ** years_ago
            yearly.append(self._point(str(year), period_prices, fallback))

        logger.debug(f"Computed market trends for '{location}' from {len(listings)} listings")
        return {
            "location": location,
            "median_price": int(round(current_median)),
            "average_price_per_sqft": round(average_per_sqft, 2),
            "inventory_count": len(listings),
            "monthly": monthly,
            "yearly": yearly,
            "forecast": {
                "annual_growth_rate": round(growth, 4),
                "next_year_median_price": int(round(current_median * (1 + growth))),
                "outlook": outlook_for(growth),
            },
        }
