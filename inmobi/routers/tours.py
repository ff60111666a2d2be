"""
Tour endpoints for participants and agents. Booking lives under ``/properties/{id}/tours``.
"""

from fastapi import APIRouter, Depends, Path
from typing import List
from uuid import UUID

from inmobi.models.user import User
from inmobi.services.tour import TourService
from inmobi.schemas.tour import TourResponse, TourUpdate
from inmobi.schemas.error import CRUD_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_active_user, get_current_agent_user, get_tour_service


router = APIRouter(tags=["Tours"])


@router.get(
    "/agent/tours",
    response_model=List[TourResponse],
    summary="Agent tours",
    description="Tours of the caller's listings; admins see every tour",
    responses={401: CRUD_ERROR_RESPONSES[401], 403: CRUD_ERROR_RESPONSES[403]}
)
async def list_agent_tours(
    current_user: User = Depends(get_current_agent_user),
    tour_service: TourService = Depends(get_tour_service)
) -> List[TourResponse]:
    tours = await tour_service.list_agent_tours(current_user)
    return [TourResponse.model_validate(t.to_dict()) for t in tours]


@router.get("/tours/{tour_id}", response_model=TourResponse, summary="Get tour", responses=CRUD_ERROR_RESPONSES)
async def get_tour(
    tour_id: UUID = Path(..., description="Tour ID"),
    current_user: User = Depends(get_current_active_user),
    tour_service: TourService = Depends(get_tour_service)
) -> TourResponse:
    tour = await tour_service.get_tour(tour_id, current_user)
    return TourResponse.model_validate(tour.to_dict())


@router.put(
    "/tours/{tour_id}",
    response_model=TourResponse,
    summary="Update or reschedule tour",
    description="Moving the date or time checks the new slot; only the agent can confirm or complete",
    responses=CRUD_ERROR_RESPONSES
)
async def update_tour(
    tour_data: TourUpdate,
    tour_id: UUID = Path(..., description="Tour ID"),
    current_user: User = Depends(get_current_active_user),
    tour_service: TourService = Depends(get_tour_service)
) -> TourResponse:
    tour = await tour_service.update_tour(tour_id, tour_data, current_user)
    return TourResponse.model_validate(tour.to_dict())


@router.post("/tours/{tour_id}/cancel", response_model=TourResponse, summary="Cancel tour", responses=CRUD_ERROR_RESPONSES)
async def cancel_tour(
    tour_id: UUID = Path(..., description="Tour ID"),
    current_user: User = Depends(get_current_active_user),
    tour_service: TourService = Depends(get_tour_service)
) -> TourResponse:
    tour = await tour_service.cancel_tour(tour_id, current_user)
    return TourResponse.model_validate(tour.to_dict())
