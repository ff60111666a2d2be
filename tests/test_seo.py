"""
Tests for sitemap generation and listing structured data.
"""

import pytest
import uuid
from datetime import datetime, timezone
from xml.etree import ElementTree

from inmobi.models.property import Property, PropertyType
from inmobi.models.user import User
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.services.seo import (
    SITEMAP_NAMESPACE,
    STATIC_PAGES,
    SEOService,
    add_months,
    breadcrumb_schema,
    organization_schema,
    property_schema,
)
from tests.conftest import PropertyFactory

NS = {"sm": SITEMAP_NAMESPACE}
SITE = "https://inmobi.test"


def build_property(**overrides) -> Property:
    return Property(id=uuid.uuid4(), owner_id=uuid.uuid4(), is_active=True, **PropertyFactory.create_property_data(**overrides))


class TestDates:
    @pytest.mark.parametrize("start,months,expected", [
        (datetime(2024, 1, 15), 3, datetime(2024, 4, 15)),
        (datetime(2024, 11, 30), 3, datetime(2025, 2, 28)),
        (datetime(2023, 11, 30), 3, datetime(2024, 2, 29)),
    ])
    def test_add_months_clamps_day(self, start, months, expected):
        assert add_months(start, months) == expected


class TestStructuredData:
    def test_property_schema(self):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        prop = build_property(images=["/uploads/webp/a.webp", "https://cdn.test/b.webp"])

        data = property_schema(prop, SITE, now=now)

        assert data["@type"] == "SingleFamilyResidence"
        assert data["url"] == f"{SITE}/property/{prop.id}"
        assert data["numberOfRooms"] == 5.0
        assert data["floorSize"] == {"@type": "QuantitativeValue", "value": 1800, "unitCode": "FTK"}
        assert data["offers"]["price"] == 450000
        assert data["offers"]["priceCurrency"] == "USD"
        assert data["offers"]["priceValidUntil"].startswith("2024-08-01")
        assert data["offers"]["availability"] == "https://schema.org/InStock"
        assert data["geo"]["latitude"] == 30.2672
        assert data["image"] == [f"{SITE}/uploads/webp/a.webp", "https://cdn.test/b.webp"]
        assert data["address"]["addressCountry"] == "US"

    @pytest.mark.parametrize("property_type,schema_type", [
        (PropertyType.APARTMENT, "Apartment"),
        (PropertyType.CONDO, "Apartment"),
        (PropertyType.TOWNHOUSE, "House"),
        (PropertyType.LAND, "LandProperty"),
    ])
    def test_type_mapping(self, property_type, schema_type):
        assert property_schema(build_property(property_type=property_type), SITE)["@type"] == schema_type

    def test_inactive_without_geo(self):
        prop = build_property(latitude=None, longitude=None)
        prop.is_active = False

        data = property_schema(prop, SITE)

        assert "geo" not in data
        assert "image" not in data
        assert data["offers"]["availability"] == "https://schema.org/SoldOut"

    def test_breadcrumbs_and_organization(self):
        crumbs = breadcrumb_schema([{"name": "Home", "url": SITE}, {"name": "Properties", "url": f"{SITE}/search"}])
        assert [item["position"] for item in crumbs["itemListElement"]] == [1, 2]

        org = organization_schema(SITE + "/")
        assert org["url"] == SITE
        assert org["logo"] == f"{SITE}/assets/logo.png"


class TestSitemaps:
    @pytest.mark.asyncio
    async def test_generate_sitemaps(self, db_session, property_repository, test_agent: User, tmp_path):
        active = await PropertyFactory.create_property(property_repository, test_agent.id)
        hidden = await PropertyFactory.create_property(property_repository, test_agent.id, is_active=False)
        neighborhood = await NeighborhoodRepository(db_session).create({
            "name": "Downtown",
            "city": "Austin",
            "state": "TX",
            "zip_code": "78701",
            "latitude": 30.27,
            "longitude": -97.74,
            "overall_score": 90,
        })

        service = SEOService(db_session, output_dir=str(tmp_path), site_url=SITE + "/")
        result = await service.generate_sitemaps()

        assert result["success"] is True
        assert result["sitemap_index_path"] == f"{SITE}/sitemap.xml"
        assert result["files"] == ["sitemap-static.xml", "sitemap-properties-1.xml", "sitemap-neighborhoods.xml"]
        assert result["url_count"] == len(STATIC_PAGES) + 2

        index = ElementTree.parse(tmp_path / "sitemap.xml").getroot()
        assert [loc.text for loc in index.findall("sm:sitemap/sm:loc", NS)] == [f"{SITE}/{name}" for name in result["files"]]

        properties = ElementTree.parse(tmp_path / "sitemap-properties-1.xml").getroot()
        locs = [loc.text for loc in properties.findall("sm:url/sm:loc", NS)]
        assert locs == [f"{SITE}/property/{active.id}"]
        assert f"{SITE}/property/{hidden.id}" not in locs
        assert properties.find("sm:url/sm:priority", NS).text == "0.9"

        neighborhoods = ElementTree.parse(tmp_path / "sitemap-neighborhoods.xml").getroot()
        assert neighborhoods.find("sm:url/sm:loc", NS).text == f"{SITE}/neighborhood/{neighborhood.id}"

    @pytest.mark.asyncio
    async def test_empty_catalog_has_no_property_sitemap(self, db_session, tmp_path):
        result = await SEOService(db_session, output_dir=str(tmp_path), site_url=SITE).generate_sitemaps()

        assert "sitemap-properties-1.xml" not in result["files"]
        assert (tmp_path / "sitemap-static.xml").exists()
