"""
Neighborhood rankings and market trend endpoints.
"""

from fastapi import APIRouter, Depends, Query, Path
from typing import List, Optional
from uuid import UUID

from inmobi.models.user import User
from inmobi.services.market import MarketService
from inmobi.schemas.neighborhood import NeighborhoodResponse, MarketTrendsResponse
from inmobi.schemas.error import COMMON_ERROR_RESPONSES, PREMIUM_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_active_user, get_market_service


router = APIRouter(tags=["Market"])


@router.get("/neighborhoods", response_model=List[NeighborhoodResponse], summary="Top neighborhoods")
async def list_neighborhoods(
    limit: int = Query(5, ge=1, le=50),
    market_service: MarketService = Depends(get_market_service)
) -> List[NeighborhoodResponse]:
    neighborhoods = await market_service.get_neighborhoods(limit)
    return [NeighborhoodResponse.model_validate(n) for n in neighborhoods]


@router.get(
    "/neighborhoods/{neighborhood_id}",
    response_model=NeighborhoodResponse,
    summary="Get neighborhood",
    responses={404: COMMON_ERROR_RESPONSES[404]}
)
async def get_neighborhood(
    neighborhood_id: UUID = Path(..., description="Neighborhood ID"),
    market_service: MarketService = Depends(get_market_service)
) -> NeighborhoodResponse:
    return NeighborhoodResponse.model_validate(await market_service.get_neighborhood(neighborhood_id))


@router.get(
    "/market/trends",
    response_model=MarketTrendsResponse,
    summary="Market trends",
    description="Premium only. Median prices, price per square foot and a one year forecast for a location.",
    responses=PREMIUM_ERROR_RESPONSES
)
async def get_market_trends(
    location: Optional[str] = Query(None, max_length=255),
    current_user: User = Depends(get_current_active_user),
    market_service: MarketService = Depends(get_market_service)
) -> MarketTrendsResponse:
    """
    Raises:
        PremiumFeatureRequiredError: If the caller is on the free tier
        BadRequestError: If no location is given
    """
    return MarketTrendsResponse.model_validate(await market_service.get_trends(location, current_user))
