"""
Chat assistant schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional
import uuid


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: List[ChatTurn] = Field(default_factory=list, max_length=50)
    property_id: Optional[uuid.UUID] = None


class ChatResponse(BaseModel):
    reply: str
    fallback: bool = Field(False, description="True when the provider could not be reached")
