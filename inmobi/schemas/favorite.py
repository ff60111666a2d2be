"""
Favorite schemas.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid
from inmobi.schemas.property import PropertyResponse


class FavoriteCreate(BaseModel):
    property_id: uuid.UUID


class FavoriteResponse(BaseModel):
    id: str
    user_id: str
    property_id: str
    created_at: Optional[datetime] = None
    property: Optional[PropertyResponse] = None
