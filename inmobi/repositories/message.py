"""
Message repository for inboxes, outboxes and inquiry statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from inmobi.repositories.base import BaseRepository
from inmobi.models.message import Message, MessageStatus
from datetime import datetime, timedelta, timezone
from typing import List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def get_user_messages(
        self,
        user_id: uuid.UUID,
        role: str = "received",
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        """
        Messages sent or received by a user, newest first.

        Args:
            user_id: Account whose mailbox is read
            role: "sent" or "received"

        Returns:
            Tuple of (messages list, total count)
        """
        column = Message.sender_id if role == "sent" else Message.recipient_id
        try:
            total = (
                await self.db.execute(select(func.count(Message.id)).where(column == user_id))
            ).scalar() or 0
            result = await self.db.execute(
                select(Message)
                .where(column == user_id)
                .order_by(desc(Message.created_at))
                .offset(skip)
                .limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to get {role} messages for user {user_id}: {e}")
            raise

    async def count_unread(self, user_id: uuid.UUID) -> int:
        return await self.count({"recipient_id": user_id, "status": MessageStatus.UNREAD})

    async def count_by_status(self, recipient_id: uuid.UUID) -> Dict[str, int]:
        """Received messages grouped by status, every status present."""
        try:
            result = await self.db.execute(
                select(Message.status, func.count(Message.id))
                .where(Message.recipient_id == recipient_id)
                .group_by(Message.status)
            )
            counts = {status.value: 0 for status in MessageStatus}
            counts.update({row[0].value: row[1] for row in result.all()})
            counts["total"] = sum(counts.values())
            return counts
        except Exception as e:
            logger.error(f"Failed to count messages by status for {recipient_id}: {e}")
            raise

    async def get_message_volume(self, days: int = 30) -> Dict[str, Any]:
        """Platform-wide message totals for the admin dashboard."""
        try:
            cutoff = datetime.now(timezone.utc) - timedelta(days=days)
            total = (await self.db.execute(select(func.count(Message.id)))).scalar() or 0
            recent = (
                await self.db.execute(
                    select(func.count(Message.id)).where(Message.created_at >= cutoff)
                )
            ).scalar() or 0
            unread = (
                await self.db.execute(
                    select(func.count(Message.id)).where(Message.status == MessageStatus.UNREAD)
                )
            ).scalar() or 0
            property_inquiries = (
                await self.db.execute(
                    select(func.count(Message.id)).where(Message.property_id.isnot(None))
                )
            ).scalar() or 0
            return {
                "total_messages": total,
                "recent_messages": recent,
                "unread_messages": unread,
                "property_inquiries": property_inquiries,
            }
        except Exception as e:
            logger.error(f"Failed to get message volume: {e}")
            raise
