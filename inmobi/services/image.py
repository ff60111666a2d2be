"""
Image upload service: stores originals, writes WebP variants and records each asset.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.config import settings
from inmobi.models.user import User
from inmobi.repositories.image import ImageRepository
from inmobi.utils.exceptions import (
    APIException,
    FileUploadError,
    InsufficientPermissionsError,
    NotFoundError,
)
from inmobi.utils.images import process_image, split_filename, validate_upload
import aiofiles
import logging
import os
import uuid

logger = logging.getLogger(__name__)

ORIGINAL_DIR = "original"
WEBP_DIR = "webp"
THUMBNAIL_DIR = "thumbnails"


class ImageService:
    """Service for processing uploaded listing photos."""

    def __init__(self, db_session: AsyncSession, upload_dir: Optional[str] = None):
        self.db = db_session
        self.repository = ImageRepository(db_session)
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.original_dir = self.upload_dir / ORIGINAL_DIR
        self.webp_dir = self.upload_dir / WEBP_DIR
        self.thumbnail_dir = self.upload_dir / THUMBNAIL_DIR

        for directory in (self.original_dir, self.webp_dir, self.thumbnail_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def _relative(self, path: Path) -> str:
        return os.path.normpath(str(path)).replace(os.sep, "/")

    async def _write(self, path: Path, content: bytes) -> None:
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

    async def process_bytes(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        owner: User
    ) -> Dict[str, Any]:
        """
        Validate, transform and store one image.

        Returns:
            Upload result with the original path, variant paths, placeholder and metadata
        """
        validate_upload(content_type, len(content))
        processed = process_image(content)

        file_id = str(uuid.uuid4())
        stem, ext = split_filename(filename)
        written: List[Path] = []

        try:
            original_path = self.original_dir / f"{file_id}-{stem}{ext}"
            await self._write(original_path, content)
            written.append(original_path)

            variant_paths: Dict[str, str] = {}
            for name, data in processed.variants.items():
                directory = self.thumbnail_dir if name == "thumbnail" else self.webp_dir
                variant_path = directory / f"{file_id}-{stem}-{name}.webp"
                await self._write(variant_path, data)
                written.append(variant_path)
                variant_paths[name] = self._relative(variant_path)

            asset = await self.repository.create({
                "file_id": file_id,
                "owner_id": owner.id,
                "original_filename": filename or f"{stem}{ext}",
                "original_path": self._relative(original_path),
                "variants": variant_paths,
                "lqip": processed.lqip,
                "width": processed.width,
                "height": processed.height,
                "format": processed.format,
                "size": processed.size,
            })
        except Exception as e:
            for path in written:
                if path.exists():
                    path.unlink()
            logger.error(f"Failed to store image {filename}: {e}", exc_info=True)
            raise FileUploadError(f"Failed to store image: {str(e)}")

        logger.info(f"Stored image {file_id} ({processed.width}x{processed.height}) for user {owner.id}")
        return asset.to_dict()

    async def upload_image(self, file: UploadFile, owner: User) -> Dict[str, Any]:
        if file.size is not None:
            # Reject before reading the body when the client declared the size
            validate_upload(file.content_type, file.size)
        content = await file.read()
        return await self.process_bytes(content, file.filename or "image", file.content_type, owner)

    async def upload_multiple_images(self, files: List[UploadFile], owner: User) -> List[Dict[str, Any]]:
        """
        Process several uploads in order.

        Raises:
            FileUploadError: If no files or more than the per-request limit were sent
        """
        if not files:
            raise FileUploadError("No files were uploaded")
        if len(files) > settings.max_files_per_upload:
            raise FileUploadError(f"At most {settings.max_files_per_upload} files can be uploaded at once")

        results = []
        for file in files:
            results.append(await self.upload_image(file, owner))
        return results

    async def get_user_images(self, owner: User) -> List[Dict[str, Any]]:
        return [asset.to_dict() for asset in await self.repository.get_owner_images(owner.id)]

    def delete_files(self, file_id: str) -> int:
        """Remove every stored file named ``{file_id}-*``; returns how many were deleted."""
        prefix = f"{file_id}-"
        deleted = 0
        for directory in (self.original_dir, self.webp_dir, self.thumbnail_dir):
            for path in directory.iterdir():
                if path.is_file() and path.name.startswith(prefix):
                    path.unlink()
                    deleted += 1
        return deleted

    async def delete_image(self, file_id: str, current_user: User) -> int:
        """
        Delete an image and all of its variants.

        Raises:
            NotFoundError: If no image has this id
            InsufficientPermissionsError: If the caller is neither the owner nor an admin
        """
        try:
            asset = await self.repository.get_by_file_id(file_id)
            if asset is None:
                raise NotFoundError("Image", file_id)
            if not current_user.can_manage(asset.owner_id):
                raise InsufficientPermissionsError("delete this image")

            deleted_count = self.delete_files(file_id)
            await self.repository.delete_by_file_id(file_id)
            logger.info(f"Deleted image {file_id} ({deleted_count} files) by user {current_user.id}")
            return deleted_count
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete image {file_id}: {e}")
            raise FileUploadError(f"Failed to delete image: {str(e)}")
