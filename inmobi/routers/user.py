"""
Endpoints scoped to the authenticated caller: favorites, inbox, drafts, tours,
own listings and language preference.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import List, Literal
from uuid import UUID

from inmobi.models.user import User
from inmobi.routers.properties import build_list_response
from inmobi.services.auth import AuthService
from inmobi.services.draft import DraftService
from inmobi.services.favorite import FavoriteService
from inmobi.services.message import MessageService
from inmobi.services.property import PropertyService, serialize
from inmobi.services.tour import TourService
from inmobi.schemas.draft import DraftCreate, DraftUpdate, DraftResponse
from inmobi.schemas.favorite import FavoriteCreate, FavoriteResponse
from inmobi.schemas.message import MessageListResponse, MessageResponse
from inmobi.schemas.property import PropertyListResponse, PropertyResponse
from inmobi.schemas.tour import TourResponse
from inmobi.schemas.user import LanguageUpdate, PublicUserResponse, UserResponse
from inmobi.schemas.error import CRUD_ERROR_RESPONSES, COMMON_ERROR_RESPONSES
from inmobi.utils.dependencies import (
    get_auth_service,
    get_current_active_user,
    get_draft_service,
    get_favorite_service,
    get_message_service,
    get_property_service,
    get_tour_service,
)


router = APIRouter(prefix="/user", tags=["User"])


# Favorites

@router.get("/favorites", response_model=List[FavoriteResponse], summary="List favorites")
async def list_favorites(
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> List[FavoriteResponse]:
    favorites = await favorite_service.list_favorites(current_user)
    return [FavoriteResponse.model_validate(f.to_dict()) for f in favorites]


@router.post(
    "/favorites",
    response_model=FavoriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add favorite",
    description="Free accounts can keep a limited number of favorites",
    responses={**CRUD_ERROR_RESPONSES, 409: COMMON_ERROR_RESPONSES[409]}
)
async def add_favorite(
    favorite_data: FavoriteCreate,
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteResponse:
    """
    Raises:
        PropertyNotFoundError: If the listing does not exist
        DuplicateResourceError: If the listing is already a favorite
        ResourceLimitExceededError: If a free account reached its limit
    """
    favorite = await favorite_service.add_favorite(favorite_data.property_id, current_user)
    return FavoriteResponse.model_validate(favorite.to_dict())


@router.delete(
    "/favorites/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove favorite",
    responses={404: COMMON_ERROR_RESPONSES[404]}
)
async def remove_favorite(
    property_id: UUID = Path(..., description="Property ID"),
    current_user: User = Depends(get_current_active_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> None:
    await favorite_service.remove_favorite(property_id, current_user)


# Messages

@router.get("/messages", response_model=MessageListResponse, summary="List messages")
async def list_messages(
    role: Literal["sent", "received"] = Query("received"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageListResponse:
    messages, total = await message_service.list_messages(current_user, role, skip, limit)
    return MessageListResponse(
        messages=[MessageResponse.model_validate(m.to_dict(include_participants=True)) for m in messages],
        total=total,
        role=role,
    )


@router.get(
    "/messages/recipients",
    response_model=List[PublicUserResponse],
    summary="Message recipients",
    description="Agents and admins the caller can write to"
)
async def list_recipients(
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service)
) -> List[PublicUserResponse]:
    recipients = await message_service.get_recipients(current_user)
    return [PublicUserResponse.model_validate(u.to_public_dict()) for u in recipients]


# Drafts

@router.get("/drafts", response_model=List[DraftResponse], summary="List drafts")
async def list_drafts(
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> List[DraftResponse]:
    drafts = await draft_service.list_drafts(current_user)
    return [DraftResponse.model_validate(d.to_dict()) for d in drafts]


@router.post("/drafts", response_model=DraftResponse, status_code=status.HTTP_201_CREATED, summary="Save draft")
async def create_draft(
    draft_data: DraftCreate,
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> DraftResponse:
    draft = await draft_service.create_draft(draft_data, current_user)
    return DraftResponse.model_validate(draft.to_dict())


@router.get("/drafts/{draft_id}", response_model=DraftResponse, summary="Get draft", responses=CRUD_ERROR_RESPONSES)
async def get_draft(
    draft_id: UUID = Path(..., description="Draft ID"),
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> DraftResponse:
    draft = await draft_service.get_draft(draft_id, current_user)
    return DraftResponse.model_validate(draft.to_dict())


@router.put("/drafts/{draft_id}", response_model=DraftResponse, summary="Update draft", responses=CRUD_ERROR_RESPONSES)
async def update_draft(
    draft_data: DraftUpdate,
    draft_id: UUID = Path(..., description="Draft ID"),
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> DraftResponse:
    draft = await draft_service.update_draft(draft_id, draft_data, current_user)
    return DraftResponse.model_validate(draft.to_dict())


@router.delete(
    "/drafts/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete draft",
    responses=CRUD_ERROR_RESPONSES
)
async def delete_draft(
    draft_id: UUID = Path(..., description="Draft ID"),
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> None:
    await draft_service.delete_draft(draft_id, current_user)


@router.post(
    "/drafts/{draft_id}/publish",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish draft",
    description="Validate the draft as a full listing, create it and delete the draft",
    responses=CRUD_ERROR_RESPONSES
)
async def publish_draft(
    draft_id: UUID = Path(..., description="Draft ID"),
    current_user: User = Depends(get_current_active_user),
    draft_service: DraftService = Depends(get_draft_service)
) -> PropertyResponse:
    """
    Raises:
        NotFoundError: If the draft does not exist or belongs to someone else
        ValidationError: If the draft is not a complete listing; the draft is kept
    """
    prop = await draft_service.publish_draft(draft_id, current_user)
    return PropertyResponse.model_validate(serialize(prop))


# Tours and listings

@router.get("/tours", response_model=List[TourResponse], summary="My tours")
async def list_my_tours(
    current_user: User = Depends(get_current_active_user),
    tour_service: TourService = Depends(get_tour_service)
) -> List[TourResponse]:
    tours = await tour_service.list_user_tours(current_user)
    return [TourResponse.model_validate(t.to_dict()) for t in tours]


@router.get(
    "/properties",
    response_model=PropertyListResponse,
    summary="My listings",
    description="The caller's listings, including deactivated ones"
)
async def list_my_properties(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.get_user_properties(current_user, limit=limit, offset=offset)
    return build_list_response(properties, total, limit, offset)


@router.put(
    "/language",
    response_model=UserResponse,
    summary="Set preferred language",
    responses={400: COMMON_ERROR_RESPONSES[400]}
)
async def set_language(
    language_data: LanguageUpdate,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.set_preferred_language(current_user, language_data.language)
    return UserResponse.model_validate(user.to_dict())
