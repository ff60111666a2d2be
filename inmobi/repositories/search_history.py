"""
Search history repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from inmobi.repositories.base import BaseRepository
from inmobi.models.search_history import SearchHistory
from typing import List
import uuid


class SearchHistoryRepository(BaseRepository[SearchHistory]):
    def __init__(self, db: AsyncSession):
        super().__init__(SearchHistory, db)

    async def record(self, user_id: uuid.UUID, query: dict) -> SearchHistory:
        return await self.create({"user_id": user_id, "query": query})

    async def get_recent(self, user_id: uuid.UUID, limit: int = 5) -> List[SearchHistory]:
        result = await self.db.execute(
            select(SearchHistory)
            .where(SearchHistory.user_id == user_id)
            .order_by(desc(SearchHistory.created_at), desc(SearchHistory.id))
            .limit(limit)
        )
        return list(result.scalars().all())
