"""
Sitemap generation and structured data endpoints.
"""

from fastapi import APIRouter, Depends, Path
from typing import Any, Dict
from uuid import UUID

from inmobi.config import settings
from inmobi.models.user import User
from inmobi.services.property import PropertyService
from inmobi.services.seo import SEOService, property_schema, breadcrumb_schema
from inmobi.schemas.seo import SitemapResponse
from inmobi.schemas.error import AUTH_ERROR_RESPONSES, COMMON_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_admin_user, get_property_service, get_seo_service


router = APIRouter(tags=["SEO"])


@router.get(
    "/sitemap/generate",
    response_model=SitemapResponse,
    summary="Generate sitemaps",
    description="Admin only. Writes the static, property and neighborhood sitemaps and their index.",
    responses=AUTH_ERROR_RESPONSES
)
async def generate_sitemap(
    current_user: User = Depends(get_current_admin_user),
    seo_service: SEOService = Depends(get_seo_service)
) -> SitemapResponse:
    return SitemapResponse.model_validate(await seo_service.generate_sitemaps())


@router.get(
    "/seo/properties/{property_id}/structured-data",
    response_model=Dict[str, Any],
    summary="Property JSON-LD",
    responses={404: COMMON_ERROR_RESPONSES[404]}
)
async def get_structured_data(
    property_id: UUID = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> Dict[str, Any]:
    """
    schema.org JSON-LD for an active listing, with its breadcrumb trail
    under ``breadcrumb``.
    """
    prop = await property_service.get_active_property(property_id)
    site_url = settings.site_url.rstrip("/")
    data = property_schema(prop, site_url)
    data["breadcrumb"] = breadcrumb_schema([
        {"name": "Home", "url": f"{site_url}/"},
        {"name": "Properties", "url": f"{site_url}/properties"},
        {"name": prop.title, "url": f"{site_url}/property/{prop.id}"},
    ])
    return data
