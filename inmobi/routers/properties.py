"""
Property API endpoints for listing CRUD, search, discovery and premium insights.
Static paths are declared before ``/{property_id}`` so they are not captured by it.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional, List
from uuid import UUID
from datetime import date
import math

from inmobi.models.user import User
from inmobi.services.property import PropertyService, parse_compare_ids, serialize
from inmobi.services.tour import TourService
from inmobi.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchRequest,
    NearbyPropertyResponse,
    BulkUploadRequest,
    BulkUploadResponse,
    PersonalizedDescriptionResponse,
    ValuePredictionResponse,
)
from inmobi.schemas.tour import TourCreate, TourResponse, TourSlotsResponse
from inmobi.schemas.error import CRUD_ERROR_RESPONSES, COMMON_ERROR_RESPONSES, PREMIUM_ERROR_RESPONSES
from inmobi.utils.dependencies import (
    get_current_active_user,
    get_optional_current_user,
    get_property_service,
    get_tour_service,
)


router = APIRouter(prefix="/properties", tags=["Properties"])


def build_list_response(properties, total: int, limit: int, offset: int) -> PropertyListResponse:
    page = offset // limit + 1
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(serialize(p)) for p in properties],
        total=total,
        page=page,
        page_size=limit,
        total_pages=total_pages,
        has_next=offset + limit < total,
        has_previous=offset > 0,
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List properties",
    description="Active listings, newest first",
    responses={400: COMMON_ERROR_RESPONSES[400], 422: COMMON_ERROR_RESPONSES[422]}
)
async def list_properties(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.list_properties(limit=limit, offset=offset)
    return build_list_response(properties, total, limit, offset)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing owned by the caller. Subscribers with matching filters are notified.",
    responses=CRUD_ERROR_RESPONSES
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    Args:
        property_data: Property creation data
        current_user: Current authenticated user
        property_service: Property service instance

    Returns:
        Created property with its owner

    Raises:
        ValidationError: If property data is invalid
        BadRequestError: If the listing could not be stored
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(serialize(property_obj))


@router.get("/featured", response_model=List[PropertyResponse], summary="Featured properties")
async def get_featured_properties(
    limit: int = Query(6, ge=1, le=50),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    featured = await property_service.get_featured(limit)
    return [PropertyResponse.model_validate(item) for item in featured]


@router.get(
    "/compare/{ids}",
    response_model=List[PropertyResponse],
    summary="Compare properties",
    description="Up to four comma-separated ids; unknown ids are dropped and request order is kept",
    responses={400: COMMON_ERROR_RESPONSES[400]}
)
async def compare_properties(
    ids: str = Path(..., description="Comma-separated property ids"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    property_ids = parse_compare_ids(ids)
    properties = await property_service.compare_properties(property_ids)
    return [PropertyResponse.model_validate(serialize(p)) for p in properties]


@router.get(
    "/nearby",
    response_model=List[NearbyPropertyResponse],
    summary="Nearby properties",
    description="Active listings within ``radius_km`` of a point, nearest first",
    responses={422: COMMON_ERROR_RESPONSES[422]}
)
async def get_nearby_properties(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(5.0, gt=0, le=500),
    limit: int = Query(20, ge=1, le=100),
    property_service: PropertyService = Depends(get_property_service)
) -> List[NearbyPropertyResponse]:
    nearby = await property_service.get_nearby(lat, lng, radius_km, limit)
    return [
        NearbyPropertyResponse.model_validate({**serialize(prop), "distance_km": round(distance, 3)})
        for prop, distance in nearby
    ]


@router.get(
    "/recommended",
    response_model=List[PropertyResponse],
    summary="Recommended properties",
    responses={401: COMMON_ERROR_RESPONSES[401]}
)
async def get_recommended_properties(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    """
    Listings similar to the caller's favorites and recent searches,
    falling back to the newest listings.
    """
    properties = await property_service.get_recommended(current_user, limit)
    return [PropertyResponse.model_validate(serialize(p)) for p in properties]


@router.post(
    "/search",
    response_model=PropertyListResponse,
    summary="Search properties",
    description="Filter active listings. Authenticated searches are saved to the caller's history.",
    responses={400: COMMON_ERROR_RESPONSES[400], 422: COMMON_ERROR_RESPONSES[422]}
)
async def search_properties(
    search: PropertySearchRequest,
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.search_properties(search, current_user)
    return build_list_response(properties, total, search.limit, search.offset)


@router.post(
    "/bulk-upload",
    response_model=BulkUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bulk upload properties",
    description="Premium and enterprise tiers only. Each item is validated and created independently.",
    responses=PREMIUM_ERROR_RESPONSES
)
async def bulk_upload_properties(
    request: BulkUploadRequest,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> BulkUploadResponse:
    result = await property_service.bulk_upload(request.properties, current_user)
    result["created"] = [PropertyResponse.model_validate(serialize(p)) for p in result["created"]]
    return BulkUploadResponse.model_validate(result)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    responses={404: COMMON_ERROR_RESPONSES[404], 422: COMMON_ERROR_RESPONSES[422]}
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Raises:
        PropertyNotFoundError: If the listing does not exist or is inactive
    """
    data = await property_service.get_property_detail(property_id)
    return PropertyResponse.model_validate(data)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Owner or admin only",
    responses=CRUD_ERROR_RESPONSES
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(serialize(property_obj))


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Soft delete; owner or admin only",
    responses=CRUD_ERROR_RESPONSES
)
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> None:
    await property_service.delete_property(property_id, current_user)


@router.get(
    "/{property_id}/personalized-description",
    response_model=PersonalizedDescriptionResponse,
    summary="Personalized description",
    responses=CRUD_ERROR_RESPONSES
)
async def get_personalized_description(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PersonalizedDescriptionResponse:
    result = await property_service.get_personalized_description(property_id, current_user)
    return PersonalizedDescriptionResponse.model_validate(result)


@router.get(
    "/{property_id}/value-prediction",
    response_model=ValuePredictionResponse,
    summary="Predict property value",
    description="Premium only. Projects the value from comparables and neighborhood growth.",
    responses=PREMIUM_ERROR_RESPONSES
)
async def predict_property_value(
    property_id: UUID = Path(..., description="Property ID"),
    years: int = Query(5, description="Years ahead, 1 to 10"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> ValuePredictionResponse:
    result = await property_service.predict_value(property_id, years, current_user)
    return ValuePredictionResponse.model_validate(result)


@router.get(
    "/{property_id}/tour-slots",
    response_model=TourSlotsResponse,
    summary="Available tour slots",
    responses={404: COMMON_ERROR_RESPONSES[404], 422: COMMON_ERROR_RESPONSES[422]}
)
async def get_tour_slots(
    property_id: UUID = Path(..., description="Property ID"),
    tour_date: date = Query(..., alias="date", description="Tour date, YYYY-MM-DD"),
    tour_service: TourService = Depends(get_tour_service)
) -> TourSlotsResponse:
    slots = await tour_service.get_available_slots(property_id, tour_date)
    return TourSlotsResponse(property_id=str(property_id), date=tour_date, slots=slots)


@router.post(
    "/{property_id}/tours",
    response_model=TourResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a tour",
    responses=CRUD_ERROR_RESPONSES
)
async def book_tour(
    tour_data: TourCreate,
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    tour_service: TourService = Depends(get_tour_service)
) -> TourResponse:
    """
    Book a pending tour in a free half-hour slot. The listing owner becomes the agent.

    Raises:
        PropertyNotFoundError: If the listing does not exist or is inactive
        BadRequestError: If the date is past or the slot is invalid or taken
    """
    tour = await tour_service.book_tour(property_id, tour_data, current_user)
    return TourResponse.model_validate(tour.to_dict())
