"""
Localization endpoints.
"""

from fastapi import APIRouter, Depends

from inmobi.services.i18n import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, get_catalog, is_rtl
from inmobi.schemas.i18n import LanguagesResponse, MessageCatalogResponse
from inmobi.utils.dependencies import get_language


router = APIRouter(prefix="/i18n", tags=["i18n"])


@router.get("/languages", response_model=LanguagesResponse, summary="Supported languages")
async def list_languages() -> LanguagesResponse:
    return LanguagesResponse.model_validate({"default": DEFAULT_LANGUAGE, "languages": SUPPORTED_LANGUAGES})


@router.get(
    "/messages",
    response_model=MessageCatalogResponse,
    summary="Message catalog",
    description="Catalog for ``lang``, the caller's preference or Accept-Language, falling back to English"
)
async def get_messages(language: str = Depends(get_language)) -> MessageCatalogResponse:
    return MessageCatalogResponse(language=language, rtl=is_rtl(language), messages=get_catalog(language))
