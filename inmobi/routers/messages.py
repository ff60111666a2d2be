"""
Messaging endpoints. Listing lives under ``/user/messages``.
"""

from fastapi import APIRouter, Depends, status, Path
from uuid import UUID

from inmobi.models.user import User
from inmobi.services.message import MessageService
from inmobi.schemas.message import MessageCreate, MessageStatusUpdate, MessageResponse
from inmobi.schemas.error import CRUD_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_active_user, get_message_service


router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
    description="Store the message and email the recipient when email is configured",
    responses=CRUD_ERROR_RESPONSES
)
async def send_message(
    message_data: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    message = await message_service.send_message(message_data, current_user)
    return MessageResponse.model_validate(message.to_dict(include_participants=True))


@router.patch(
    "/{message_id}/status",
    response_model=MessageResponse,
    summary="Update message status",
    description="Recipient only",
    responses=CRUD_ERROR_RESPONSES
)
async def update_message_status(
    status_data: MessageStatusUpdate,
    message_id: UUID = Path(..., description="Message ID"),
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service)
) -> MessageResponse:
    message = await message_service.update_status(message_id, status_data.status, current_user)
    return MessageResponse.model_validate(message.to_dict(include_participants=True))
