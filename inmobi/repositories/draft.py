"""
Property draft repository. Every lookup is scoped to the owning user.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc
from inmobi.repositories.base import BaseRepository
from inmobi.models.draft import PropertyDraft
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class DraftRepository(BaseRepository[PropertyDraft]):
    def __init__(self, db: AsyncSession):
        super().__init__(PropertyDraft, db)

    async def get_user_drafts(self, user_id: uuid.UUID) -> List[PropertyDraft]:
        try:
            result = await self.db.execute(
                select(PropertyDraft)
                .where(PropertyDraft.user_id == user_id)
                .order_by(desc(PropertyDraft.last_updated))
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get drafts for user {user_id}: {e}")
            raise

    async def get_user_draft(self, user_id: uuid.UUID, draft_id: uuid.UUID) -> Optional[PropertyDraft]:
        """The draft if it exists and belongs to ``user_id``."""
        result = await self.db.execute(
            select(PropertyDraft).where(
                and_(PropertyDraft.id == draft_id, PropertyDraft.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()
