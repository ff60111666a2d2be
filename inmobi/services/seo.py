"""
Sitemap generation and schema.org JSON-LD for listings.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.config import settings
from inmobi.models.property import Property, PropertyType
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.repositories.property import PropertyRepository
import aiofiles
import logging
import os

logger = logging.getLogger(__name__)

MAX_URLS_PER_SITEMAP = 10000
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

STATIC_PAGES = [
    ("/", 1.0, "weekly"),
    ("/search", 0.9, "daily"),
    ("/about", 0.7, "monthly"),
    ("/contact", 0.7, "monthly"),
    ("/blog", 0.8, "weekly"),
    ("/auth", 0.6, "monthly"),
    ("/faq", 0.7, "monthly"),
    ("/pricing", 0.8, "monthly"),
]

SCHEMA_TYPES = {
    PropertyType.APARTMENT: "Apartment",
    PropertyType.CONDO: "Apartment",
    PropertyType.HOUSE: "SingleFamilyResidence",
    PropertyType.TOWNHOUSE: "House",
    PropertyType.LAND: "LandProperty",
}

ORGANIZATION = {
    "name": "Inmobi Real Estate",
    "telephone": "+34679680000",
    "email": "info@inmobi.mobi",
    "address": {
        "streetAddress": "c. de la Ribera 14",
        "addressLocality": "Barcelona",
        "addressRegion": "Catalonia",
        "postalCode": "08003",
        "addressCountry": "Spain",
    },
}


@dataclass
class SitemapUrl:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None


def render_urlset(urls: List[SitemapUrl]) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f'<urlset xmlns="{SITEMAP_NAMESPACE}">']
    for url in urls:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(url.loc)}</loc>")
        if url.lastmod:
            lines.append(f"    <lastmod>{url.lastmod}</lastmod>")
        if url.changefreq:
            lines.append(f"    <changefreq>{url.changefreq}</changefreq>")
        if url.priority is not None:
            lines.append(f"    <priority>{url.priority:.1f}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines)


def render_sitemap_index(locations: List[str], lastmod: str) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f'<sitemapindex xmlns="{SITEMAP_NAMESPACE}">']
    for loc in locations:
        lines.append("  <sitemap>")
        lines.append(f"    <loc>{escape(loc)}</loc>")
        lines.append(f"    <lastmod>{lastmod}</lastmod>")
        lines.append("  </sitemap>")
    lines.append("</sitemapindex>")
    return "\n".join(lines)


def add_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _timestamp(value: Optional[datetime], fallback: str) -> str:
    return value.isoformat() if value else fallback


def organization_schema(site_url: Optional[str] = None) -> Dict[str, Any]:
    base = (site_url or settings.site_url).rstrip("/")
    return {
        "@context": "https://schema.org",
        "@type": "RealEstateAgent",
        "name": ORGANIZATION["name"],
        "url": base,
        "logo": f"{base}/assets/logo.png",
        "telephone": ORGANIZATION["telephone"],
        "address": {"@type": "PostalAddress", **ORGANIZATION["address"]},
        "contactPoint": {
            "@type": "ContactPoint",
            "telephone": ORGANIZATION["telephone"],
            "email": ORGANIZATION["email"],
            "contactType": "customer service",
        },
    }


def breadcrumb_schema(items: List[Dict[str, str]]) -> Dict[str, Any]:
    """BreadcrumbList for ``[{"name": ..., "url": ...}, ...]`` in page order."""
    return {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": item["name"],
                "item": item["url"],
            }
            for position, item in enumerate(items, start=1)
        ],
    }


def property_schema(prop: Property, site_url: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build schema.org JSON-LD for a listing.

    The offer is valid for three months from ``now``.
    """
    base = (site_url or settings.site_url).rstrip("/")
    now = now or datetime.now(timezone.utc)
    images = [image if image.startswith("http") else f"{base}{image}" for image in prop.images or []]

    data: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": SCHEMA_TYPES.get(prop.property_type, "House"),
        "name": prop.title,
        "description": prop.description,
        "url": f"{base}/property/{prop.id}",
        "identifier": str(prop.id),
        "address": {
            "@type": "PostalAddress",
            "streetAddress": prop.address,
            "addressLocality": prop.city,
            "addressRegion": prop.state,
            "postalCode": prop.zip_code,
            "addressCountry": prop.country or "US",
        },
        "numberOfRooms": prop.bedrooms + prop.bathrooms,
        "numberOfBedrooms": prop.bedrooms,
        "numberOfBathroomsTotal": prop.bathrooms,
        "floorSize": {
            "@type": "QuantitativeValue",
            "value": prop.square_feet,
            "unitCode": "FTK",
        },
        "offers": {
            "@type": "Offer",
            "price": prop.price,
            "priceCurrency": "USD",
            "priceValidUntil": add_months(now, 3).isoformat(),
            "availability": "https://schema.org/InStock" if prop.is_active else "https://schema.org/SoldOut",
        },
        "provider": {
            "@type": "RealEstateAgent",
            "name": ORGANIZATION["name"],
            "url": base,
            "image": f"{base}/assets/logo.png",
            "telephone": ORGANIZATION["telephone"],
            "address": {"@type": "PostalAddress", **ORGANIZATION["address"]},
        },
        "datePosted": _timestamp(prop.created_at, now.isoformat()),
    }
    if prop.latitude is not None and prop.longitude is not None:
        data["geo"] = {
            "@type": "GeoCoordinates",
            "latitude": prop.latitude,
            "longitude": prop.longitude,
        }
    if images:
        data["image"] = images[0] if len(images) == 1 else images
    return data


class SEOService:
    """Writes sitemap files for the public site."""

    def __init__(self, db_session: AsyncSession, output_dir: Optional[str] = None, site_url: Optional[str] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.neighborhood_repo = NeighborhoodRepository(db_session)
        self.output_dir = output_dir or settings.sitemap_dir
        self.site_url = (site_url or settings.site_url).rstrip("/")

    async def _write(self, filename: str, content: str) -> str:
        path = os.path.join(self.output_dir, filename)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
        return path

    async def generate_sitemaps(self) -> Dict[str, Any]:
        """
        Write the static, property and neighborhood sitemaps plus the index.

        Returns:
            success flag, public URL of the index, written file names and URL count
        """
        os.makedirs(self.output_dir, exist_ok=True)
        now = datetime.now(timezone.utc).isoformat()
        files: List[str] = []
        url_count = 0

        static_urls = [
            SitemapUrl(f"{self.site_url}{path}", now, changefreq, priority)
            for path, priority, changefreq in STATIC_PAGES
        ]
        await self._write("sitemap-static.xml", render_urlset(static_urls))
        files.append("sitemap-static.xml")
        url_count += len(static_urls)

        entries = await self.property_repo.get_sitemap_entries()
        for chunk_index, start in enumerate(range(0, len(entries), MAX_URLS_PER_SITEMAP), start=1):
            chunk = entries[start:start + MAX_URLS_PER_SITEMAP]
            urls = [
                SitemapUrl(f"{self.site_url}/property/{property_id}", _timestamp(updated_at, now), "daily", 0.9)
                for property_id, updated_at in chunk
            ]
            filename = f"sitemap-properties-{chunk_index}.xml"
            await self._write(filename, render_urlset(urls))
            files.append(filename)
            url_count += len(urls)

        neighborhoods = await self.neighborhood_repo.get_all()
        neighborhood_urls = [
            SitemapUrl(
                f"{self.site_url}/neighborhood/{neighborhood.id}",
                _timestamp(neighborhood.updated_at, now),
                "weekly",
                0.8,
            )
            for neighborhood in neighborhoods
        ]
        await self._write("sitemap-neighborhoods.xml", render_urlset(neighborhood_urls))
        files.append("sitemap-neighborhoods.xml")
        url_count += len(neighborhood_urls)

        index = render_sitemap_index([f"{self.site_url}/{name}" for name in files], now)
        await self._write("sitemap.xml", index)

        logger.info(f"Generated {len(files)} sitemaps ({url_count} URLs) in {self.output_dir}")
        return {
            "success": True,
            "sitemap_index_path": f"{self.site_url}/sitemap.xml",
            "files": files,
            "url_count": url_count,
        }
