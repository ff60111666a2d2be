"""
Image upload endpoints.
Uploads are re-encoded to WebP in several sizes with a blurred LQIP placeholder.
"""

from typing import List
from fastapi import APIRouter, Depends, UploadFile, File, Path, status

from inmobi.models.user import User
from inmobi.services.image import ImageService
from inmobi.schemas.image import ImageUploadResponse, MultiImageUploadResponse, ImageDeleteResponse
from inmobi.schemas.error import CRUD_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_active_user, get_image_service

router = APIRouter(prefix="/images", tags=["images"])


@router.post(
    "/upload",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
    description="Any image/* upload up to the configured size limit",
    responses=CRUD_ERROR_RESPONSES
)
async def upload_image(
    file: UploadFile = File(..., description="Image file to upload"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageUploadResponse:
    return ImageUploadResponse.model_validate(await image_service.upload_image(file, current_user))


@router.post(
    "/upload-multiple",
    response_model=MultiImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload several images",
    responses=CRUD_ERROR_RESPONSES
)
async def upload_multiple_images(
    files: List[UploadFile] = File(..., description="Image files to upload"),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> MultiImageUploadResponse:
    images = await image_service.upload_multiple_images(files, current_user)
    return MultiImageUploadResponse(
        images=[ImageUploadResponse.model_validate(image) for image in images],
        count=len(images),
    )


@router.get("/me", response_model=List[ImageUploadResponse], summary="My images")
async def list_my_images(
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> List[ImageUploadResponse]:
    return [ImageUploadResponse.model_validate(image) for image in await image_service.get_user_images(current_user)]


@router.delete(
    "/{file_id}",
    response_model=ImageDeleteResponse,
    summary="Delete an image",
    description="Removes the original and every variant; owner or admin only",
    responses=CRUD_ERROR_RESPONSES
)
async def delete_image(
    file_id: str = Path(..., min_length=1, max_length=64),
    current_user: User = Depends(get_current_active_user),
    image_service: ImageService = Depends(get_image_service)
) -> ImageDeleteResponse:
    deleted_count = await image_service.delete_image(file_id, current_user)
    return ImageDeleteResponse(file_id=file_id, deleted_count=deleted_count)
