"""
Image upload schemas.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class ImageMetadata(BaseModel):
    width: int
    height: int
    format: Optional[str] = None
    size: int = Field(..., description="Original upload size in bytes")


class ImageUploadResponse(BaseModel):
    """Paths of the stored original and its WebP variants plus the LQIP data URI."""

    id: str
    filename: str
    original: str
    variants: Dict[str, str] = Field(..., examples=[{"thumbnail": "uploads/thumbnails/abc-house-thumbnail.webp"}])
    placeholder: Optional[str] = Field(None, description="Base64 WebP data URI")
    metadata: ImageMetadata


class MultiImageUploadResponse(BaseModel):
    images: List[ImageUploadResponse]
    count: int


class ImageDeleteResponse(BaseModel):
    file_id: str
    deleted_count: int
