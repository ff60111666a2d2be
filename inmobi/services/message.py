"""
Messaging between users, agents and admins.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.message import Message, MessageStatus
from inmobi.models.user import User
from inmobi.repositories.message import MessageRepository
from inmobi.repositories.property import PropertyRepository
from inmobi.repositories.user import UserRepository
from inmobi.schemas.message import MessageCreate
from inmobi.services.email import EmailService
from inmobi.utils.exceptions import (
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
    PropertyNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class MessageService:
    """
    Sends and lists messages.
    New messages trigger a best-effort notification email to the recipient.
    """

    def __init__(self, db_session: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db_session
        self.message_repo = MessageRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.email_service = email_service

    async def send_message(self, data: MessageCreate, sender: User) -> Message:
        """
        Raises:
            NotFoundError: If the recipient does not exist
            BadRequestError: If the sender writes to themselves
        """
        if data.recipient_id == sender.id:
            raise BadRequestError("You cannot send a message to yourself")

        recipient = await self.user_repo.get_by_id(data.recipient_id)
        if recipient is None or not recipient.is_active:
            raise NotFoundError("User", str(data.recipient_id))

        if data.property_id is not None and await self.property_repo.get_by_id(data.property_id) is None:
            raise PropertyNotFoundError(str(data.property_id))

        message = await self.message_repo.create({
            "sender_id": sender.id,
            "recipient_id": recipient.id,
            "property_id": data.property_id,
            "subject": data.subject,
            "content": data.content,
            "status": MessageStatus.UNREAD,
        })
        logger.info(f"Message {message.id} sent from {sender.id} to {recipient.id}")

        if self.email_service is not None:
            sent = await self.email_service.send_new_message_notification(recipient, message, sender)
            if not sent:
                logger.warning(f"Notification email for message {message.id} was not sent")

        return message

    async def list_messages(
        self,
        current_user: User,
        role: str = "received",
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        return await self.message_repo.get_user_messages(current_user.id, role, skip, limit)

    async def update_status(self, message_id: uuid.UUID, status: str, current_user: User) -> Message:
        """
        Raises:
            NotFoundError: If the message does not exist
            InsufficientPermissionsError: If the caller is not the recipient
        """
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message", str(message_id))
        if message.recipient_id != current_user.id:
            raise InsufficientPermissionsError("change the status of this message")

        message = await self.message_repo.update_instance(message, {"status": MessageStatus(status)})
        logger.info(f"Message {message_id} marked {status}")
        return message

    async def get_recipients(self, current_user: User) -> List[User]:
        """Agents and admins the caller can write to, excluding themselves."""
        return [u for u in await self.user_repo.get_message_recipients() if u.id != current_user.id]
