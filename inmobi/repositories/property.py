"""
Property repository for listing search, nearby lookups and statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, cast, String
from inmobi.repositories.base import BaseRepository
from inmobi.models.property import Property, PropertyType
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
import math
import uuid
import logging

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


class PropertySearchFilters:
    """Search criteria accepted by ``PropertyRepository.search_properties``."""

    def __init__(
        self,
        location: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        min_beds: Optional[int] = None,
        min_baths: Optional[float] = None,
        min_sqft: Optional[int] = None,
        max_sqft: Optional[int] = None,
        features: Optional[List[str]] = None,
        owner_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = True
    ):
        self.location = location
        self.property_type = property_type
        self.min_price = min_price
        self.max_price = max_price
        self.min_beds = min_beds
        self.min_baths = min_baths
        self.min_sqft = min_sqft
        self.max_sqft = max_sqft
        self.features = features or []
        self.owner_id = owner_id
        self.is_active = is_active


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Public reads only ever see active listings; soft-deleted rows stay in the table.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property after model-level validation.

        Raises:
            ValueError: If validation fails
        """
        try:
            Property(**property_data).validate_all()
        except ValueError as e:
            logger.warning(f"Property validation failed: {e}")
            raise

        created_property = await self.create(property_data)
        logger.info(f"Created property: {created_property.title} (ID: {created_property.id})")
        return created_property

    async def get_active(self, property_id: uuid.UUID) -> Optional[Property]:
        try:
            query = select(Property).where(
                and_(Property.id == property_id, Property.is_active == True)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get active property {property_id}: {e}")
            raise

    async def get_active_by_ids(self, property_ids: List[uuid.UUID]) -> List[Property]:
        """Active listings among ``property_ids``, in no particular order."""
        if not property_ids:
            return []
        try:
            query = select(Property).where(
                and_(Property.id.in_(property_ids), Property.is_active == True)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get properties by ids: {e}")
            raise

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Search properties, newest first.

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters)

            query = select(Property)
            count_query = select(func.count(Property.id))
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total_count = (await self.db.execute(count_query)).scalar() or 0

            query = query.order_by(desc(Property.created_at), desc(Property.id)).offset(skip).limit(limit)
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        conditions = []

        if filters.is_active is not None:
            conditions.append(Property.is_active == filters.is_active)

        if filters.location:
            pattern = f"%{filters.location.strip()}%"
            conditions.append(
                or_(
                    Property.city.ilike(pattern),
                    Property.state.ilike(pattern),
                    Property.zip_code.ilike(pattern),
                    Property.address.ilike(pattern),
                )
            )

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_beds is not None:
            conditions.append(Property.bedrooms >= filters.min_beds)
        if filters.min_baths is not None:
            conditions.append(Property.bathrooms >= filters.min_baths)

        if filters.min_sqft is not None:
            conditions.append(Property.square_feet >= filters.min_sqft)
        if filters.max_sqft is not None:
            conditions.append(Property.square_feet <= filters.max_sqft)

        # Features are a JSON list; match each quoted entry in its text form
        for feature in filters.features:
            conditions.append(cast(Property.features, String).ilike(f'%"{feature}%'))

        if filters.owner_id:
            conditions.append(Property.owner_id == filters.owner_id)

        return conditions

    async def get_properties_by_owner(
        self,
        owner_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20,
        include_inactive: bool = False
    ) -> Tuple[List[Property], int]:
        filters = PropertySearchFilters(
            owner_id=owner_id,
            is_active=None if include_inactive else True
        )
        return await self.search_properties(filters, skip=skip, limit=limit)

    async def get_nearby_properties(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 5.0,
        limit: int = 20
    ) -> List[Tuple[Property, float]]:
        """
        Active properties within ``radius_km`` of a coordinate, nearest first.

        A bounding box narrows the rows in SQL; the exact Haversine distance
        is computed per row.

        Returns:
            List of (property, distance_km) pairs
        """
        try:
            lat_delta = radius_km / 111.0
            lng_delta = radius_km / (111.0 * max(math.cos(math.radians(latitude)), 0.01))

            query = select(Property).where(
                and_(
                    Property.is_active == True,
                    Property.latitude.isnot(None),
                    Property.longitude.isnot(None),
                    Property.latitude.between(latitude - lat_delta, latitude + lat_delta),
                    Property.longitude.between(longitude - lng_delta, longitude + lng_delta),
                )
            )
            result = await self.db.execute(query)

            nearby = []
            for prop in result.scalars().all():
                distance = haversine_km(latitude, longitude, prop.latitude, prop.longitude)
                if distance <= radius_km:
                    nearby.append((prop, round(distance, 3)))
            nearby.sort(key=lambda item: item[1])

            logger.debug(f"Found {len(nearby)} properties within {radius_km}km")
            return nearby[:limit]
        except Exception as e:
            logger.error(f"Failed to get nearby properties: {e}")
            raise

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        """Active premium listings, most recently updated first."""
        try:
            query = (
                select(Property)
                .where(and_(Property.is_active == True, Property.is_premium == True))
                .order_by(desc(Property.updated_at))
                .limit(limit)
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().all())
            logger.debug(f"Retrieved {len(properties)} featured properties")
            return properties
        except Exception as e:
            logger.error(f"Failed to get featured properties: {e}")
            raise

    async def get_recommended(
        self,
        property_types: List[PropertyType],
        cities: List[str],
        exclude_ids: List[uuid.UUID],
        limit: int = 10
    ) -> List[Property]:
        """Active listings matching any of the given types or cities."""
        try:
            preference = []
            if property_types:
                preference.append(Property.property_type.in_(property_types))
            if cities:
                preference.append(func.lower(Property.city).in_([c.lower() for c in cities]))

            query = select(Property).where(Property.is_active == True)
            if preference:
                query = query.where(or_(*preference))
            if exclude_ids:
                query = query.where(Property.id.notin_(exclude_ids))

            result = await self.db.execute(query.order_by(desc(Property.created_at)).limit(limit))
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get recommended properties: {e}")
            raise

    async def get_active_in_location(self, location: str) -> List[Property]:
        """Every active listing whose city, state, zip or address contains ``location``."""
        properties, _ = await self.search_properties(
            PropertySearchFilters(location=location), skip=0, limit=10_000
        )
        return properties

    async def get_sitemap_entries(self) -> List[Tuple[uuid.UUID, datetime]]:
        """(id, updated_at) of every active listing, oldest first."""
        try:
            query = (
                select(Property.id, Property.updated_at)
                .where(Property.is_active == True)
                .order_by(Property.created_at)
            )
            result = await self.db.execute(query)
            return [(row[0], row[1]) for row in result.all()]
        except Exception as e:
            logger.error(f"Failed to get sitemap entries: {e}")
            raise

    async def get_property_statistics(self, owner_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Listing statistics for the agent and admin dashboards.

        Args:
            owner_id: Restrict the figures to one owner's listings

        Returns:
            Totals, active counts by type and price statistics of active listings
        """
        try:
            def scoped(query):
                if owner_id:
                    return query.where(Property.owner_id == owner_id)
                return query

            total_properties = (
                await self.db.execute(scoped(select(func.count(Property.id))))
            ).scalar() or 0
            active_properties = (
                await self.db.execute(
                    scoped(select(func.count(Property.id)).where(Property.is_active == True))
                )
            ).scalar() or 0

            type_result = await self.db.execute(
                scoped(
                    select(Property.property_type, func.count(Property.id))
                    .where(Property.is_active == True)
                    .group_by(Property.property_type)
                )
            )
            properties_by_type = {row[0].value: row[1] for row in type_result.all()}

            price_result = await self.db.execute(
                scoped(
                    select(func.min(Property.price), func.max(Property.price), func.avg(Property.price))
                    .where(Property.is_active == True)
                )
            )
            min_price, max_price, avg_price = price_result.first()

            premium_properties = (
                await self.db.execute(
                    scoped(
                        select(func.count(Property.id)).where(
                            and_(Property.is_active == True, Property.is_premium == True)
                        )
                    )
                )
            ).scalar() or 0

            return {
                "total_properties": total_properties,
                "active_properties": active_properties,
                "inactive_properties": total_properties - active_properties,
                "premium_properties": premium_properties,
                "properties_by_type": properties_by_type,
                "price_statistics": {
                    "min_price": float(min_price) if min_price else 0,
                    "max_price": float(max_price) if max_price else 0,
                    "avg_price": round(float(avg_price), 2) if avg_price else 0,
                },
            }
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise
