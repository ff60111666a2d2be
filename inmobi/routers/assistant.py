"""
Chat assistant and geocoding endpoints backed by third-party providers.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from inmobi.models.user import User
from inmobi.services.chat import ChatService, get_chat_service
from inmobi.services.geocoding import GeocodingService
from inmobi.services.i18n import DEFAULT_LANGUAGE, translate
from inmobi.services.property import PropertyService
from inmobi.schemas.chat import ChatRequest, ChatResponse
from inmobi.schemas.geocoding import GeocodeResponse, GeocodeResult
from inmobi.schemas.error import COMMON_ERROR_RESPONSES
from inmobi.utils.dependencies import (
    get_geocoder,
    get_language,
    get_optional_current_user,
    get_property_service,
)
from inmobi.utils.exceptions import PropertyNotFoundError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assistant"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask the assistant",
    description="Provider failures return a canned apology with ``fallback`` set",
    responses={422: COMMON_ERROR_RESPONSES[422]}
)
async def chat(
    chat_request: ChatRequest,
    language: str = Depends(get_language),
    current_user: Optional[User] = Depends(get_optional_current_user),
    chat_service: ChatService = Depends(get_chat_service),
    property_service: PropertyService = Depends(get_property_service)
) -> ChatResponse:
    """
    Answer a chat message, adding the listing's details to the prompt when
    ``property_id`` names an active listing.
    """
    prop = None
    if chat_request.property_id is not None:
        try:
            prop = await property_service.get_active_property(chat_request.property_id)
        except PropertyNotFoundError:
            logger.debug(f"Chat context property {chat_request.property_id} not found")

    history = [turn.model_dump() for turn in chat_request.history]
    reply, fallback = await chat_service.reply(chat_request.message, history, prop)
    if fallback and language != DEFAULT_LANGUAGE:
        reply = translate("chat.unavailable", language)

    if current_user is not None:
        logger.debug(f"Chat reply for user {current_user.id} (fallback={fallback})")
    return ChatResponse(reply=reply, fallback=fallback)


@router.get(
    "/geocode",
    response_model=GeocodeResponse,
    summary="Geocode an address",
    responses={422: COMMON_ERROR_RESPONSES[422], 502: COMMON_ERROR_RESPONSES[502]}
)
async def geocode(
    q: str = Query(..., min_length=1, max_length=255, description="Free-text address"),
    limit: int = Query(5, ge=1, le=20),
    geocoder: GeocodingService = Depends(get_geocoder)
) -> GeocodeResponse:
    results = await geocoder.search(q, limit)
    return GeocodeResponse(query=q, results=[GeocodeResult.model_validate(r) for r in results])


@router.get(
    "/geocode/reverse",
    response_model=GeocodeResponse,
    summary="Reverse geocode a coordinate",
    responses={422: COMMON_ERROR_RESPONSES[422], 502: COMMON_ERROR_RESPONSES[502]}
)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    geocoder: GeocodingService = Depends(get_geocoder)
) -> GeocodeResponse:
    results = await geocoder.reverse(lat, lng)
    return GeocodeResponse(query=f"{lat},{lng}", results=[GeocodeResult.model_validate(r) for r in results])
