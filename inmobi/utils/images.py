"""
Pillow helpers for the upload pipeline: validation, orientation, WebP variants and LQIP.
All functions work on in-memory bytes; writing files is left to the caller.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from PIL import Image, ImageOps, UnidentifiedImageError
from inmobi.config import settings
from inmobi.utils.exceptions import FileUploadError, FileSizeExceededError, UnsupportedFileTypeError
import base64
import io
import os
import re

VARIANT_SIZES: Dict[str, Tuple[int, int]] = {
    "thumbnail": (200, 150),
    "small": (640, 480),
    "medium": (1024, 768),
    "large": (1920, 1280),
}

VARIANT_QUALITY = 80
LQIP_SIZE = (20, 15)
LQIP_QUALITY = 20


@dataclass
class ProcessedImage:
    width: int
    height: int
    format: Optional[str]
    size: int
    variants: Dict[str, bytes] = field(default_factory=dict)
    lqip: str = ""


def sanitize_name(name: str) -> str:
    """Lowercase ``name`` and collapse every run of characters outside a-z0-9 into '-'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower())


def split_filename(filename: str) -> Tuple[str, str]:
    """Return (sanitized stem, lowercase extension) of an uploaded file name."""
    stem, ext = os.path.splitext(os.path.basename(filename or "image"))
    return sanitize_name(stem) or "image", ext.lower()


def validate_upload(content_type: Optional[str], size: int, max_size: Optional[int] = None) -> None:
    """
    Reject non-image uploads and files over the size limit.

    Raises:
        UnsupportedFileTypeError: If the content type is not ``image/*``
        FileSizeExceededError: If the file is larger than ``max_size``
    """
    if not content_type or not content_type.startswith("image/"):
        raise UnsupportedFileTypeError(content_type or "unknown")
    limit = max_size if max_size is not None else settings.max_file_size
    if size > limit:
        raise FileSizeExceededError(size, limit)


def _normalize_mode(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "RGBA"):
        return img
    if "A" in img.getbands() or "transparency" in img.info:
        return img.convert("RGBA")
    return img.convert("RGB")


def _encode_webp(img: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    # No exif/icc arguments are passed, so the output carries no metadata
    img.save(buffer, format="WEBP", quality=quality)
    return buffer.getvalue()


def fit_within(size: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
    """Dimensions of ``size`` scaled to fit inside ``box`` without enlarging."""
    width, height = size
    box_width, box_height = box
    scale = min(box_width / width, box_height / height, 1.0)
    return max(1, round(width * scale)), max(1, round(height * scale))


def make_lqip(img: Image.Image) -> str:
    """Tiny blurred-up placeholder as a base64 WebP data URI."""
    placeholder = ImageOps.fit(img, LQIP_SIZE, Image.Resampling.LANCZOS)
    encoded = base64.b64encode(_encode_webp(placeholder, LQIP_QUALITY)).decode("ascii")
    return f"data:image/webp;base64,{encoded}"


def process_image(content: bytes) -> ProcessedImage:
    """
    Decode an upload, apply its EXIF orientation and build every WebP variant.

    Raises:
        FileUploadError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(content)) as source:
            source.load()
            image_format = source.format
            oriented = ImageOps.exif_transpose(source)
    except (UnidentifiedImageError, OSError) as e:
        raise FileUploadError(f"Invalid image file: {str(e)}")

    img = _normalize_mode(oriented)
    width, height = img.size

    result = ProcessedImage(
        width=width,
        height=height,
        format=image_format.lower() if image_format else None,
        size=len(content),
    )

    for name, box in VARIANT_SIZES.items():
        variant = img.copy()
        # thumbnail() keeps the aspect ratio and never upscales
        variant.thumbnail(box, Image.Resampling.LANCZOS)
        result.variants[name] = _encode_webp(variant, VARIANT_QUALITY)

    result.lqip = make_lqip(img)
    return result
