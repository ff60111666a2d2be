"""
ImageAsset model recording an uploaded image and its generated variants.
"""

from sqlalchemy import String, Integer, JSON, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from inmobi.database import Base, isoformat
from typing import Dict, Optional
import uuid


class ImageAsset(Base):
    """
    Uploaded image. Files live on disk under the upload directory; this row
    keeps the paths so the owner can be checked before deletion.
    """

    __tablename__ = "image_assets"

    file_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Prefix shared by every file generated for the upload"
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)

    original_path: Mapped[str] = mapped_column(String(500), nullable=False)

    variants: Mapped[Dict[str, str]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Variant name to WebP path"
    )

    lqip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    format: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, comment="Original size in bytes")

    def __repr__(self) -> str:
        return f"<ImageAsset(file_id={self.file_id}, filename={self.original_filename})>"

    @property
    def aspect_ratio(self) -> Optional[float]:
        if self.width and self.height:
            return round(self.width / self.height, 2)
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.file_id,
            "filename": self.original_filename,
            "original": self.original_path,
            "variants": dict(self.variants or {}),
            "placeholder": self.lqip,
            "metadata": {
                "width": self.width,
                "height": self.height,
                "format": self.format,
                "size": self.size,
            },
            "owner_id": str(self.owner_id),
            "created_at": isoformat(self.created_at),
        }
