"""
Property draft schemas.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class DraftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Lake house, unfinished"])
    form_data: Dict[str, Any] = Field(default_factory=dict, description="Partially filled property form")


class DraftUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    form_data: Optional[Dict[str, Any]] = None


class DraftResponse(BaseModel):
    id: str
    user_id: str
    name: str
    form_data: Dict[str, Any]
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None
