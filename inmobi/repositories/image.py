"""
Image asset repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, desc
from inmobi.repositories.base import BaseRepository
from inmobi.models.image import ImageAsset
from typing import List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[ImageAsset]):
    def __init__(self, db: AsyncSession):
        super().__init__(ImageAsset, db)

    async def get_by_file_id(self, file_id: str) -> Optional[ImageAsset]:
        return await self.get_by_field("file_id", file_id)

    async def get_owner_images(self, owner_id: uuid.UUID) -> List[ImageAsset]:
        result = await self.db.execute(
            select(ImageAsset)
            .where(ImageAsset.owner_id == owner_id)
            .order_by(desc(ImageAsset.created_at))
        )
        return list(result.scalars().all())

    async def delete_by_file_id(self, file_id: str) -> bool:
        try:
            result = await self.db.execute(delete(ImageAsset).where(ImageAsset.file_id == file_id))
            await self.db.commit()
            return result.rowcount > 0
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete image record {file_id}: {e}")
            raise
