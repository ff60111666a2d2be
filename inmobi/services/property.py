"""
Property service for listing CRUD, search and the premium listing insights.
Handles ownership rules, cache invalidation and new-listing notifications.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.models.property import Property, PropertyType
from inmobi.models.user import User
from inmobi.repositories.favorite import FavoriteRepository
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.repositories.property import PropertyRepository, PropertySearchFilters
from inmobi.repositories.search_history import SearchHistoryRepository
from inmobi.schemas.property import (
    MAX_COMPARE_IDS,
    PropertyCreate,
    PropertySearchRequest,
    PropertyUpdate,
)
from inmobi.services.cache import PropertyCache, PROPERTIES, FEATURED_PROPERTIES, get_property_cache
from inmobi.services.chat import ChatService
from inmobi.services.notifications import NotificationHub, get_notification_hub
from inmobi.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    PremiumFeatureRequiredError,
    PropertyNotFoundError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

DEFAULT_ANNUAL_GROWTH = 0.03
MAX_PREDICTION_YEARS = 10
RECENT_SEARCHES = 5


def serialize(prop: Property) -> Dict[str, Any]:
    return prop.to_dict(include_owner=True)


def parse_compare_ids(raw: str) -> List[uuid.UUID]:
    """
    Parse the comma-separated id list of the compare endpoint.

    Raises:
        BadRequestError: If the list is empty, too long or has a malformed id
    """
    parts = [part.strip() for part in (raw or "").split(",") if part.strip()]
    if not parts:
        raise BadRequestError("At least one property id is required")
    if len(parts) > MAX_COMPARE_IDS:
        raise BadRequestError(f"At most {MAX_COMPARE_IDS} properties can be compared")
    try:
        return [uuid.UUID(part) for part in parts]
    except ValueError:
        raise BadRequestError("Property ids must be valid UUIDs")


def _validation_message(error: PydanticValidationError) -> str:
    messages = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item.get("loc", ()))
        messages.append(f"{field}: {item.get('msg')}" if field else item.get("msg", ""))
    return "; ".join(messages)


class PropertyService:
    """
    Property service for listing management and discovery.
    Detail and featured reads go through the property cache; writes clear it.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        cache: Optional[PropertyCache] = None,
        hub: Optional[NotificationHub] = None,
        chat_service: Optional[ChatService] = None
    ):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.search_repo = SearchHistoryRepository(db_session)
        self.neighborhood_repo = NeighborhoodRepository(db_session)
        self.cache = cache if cache is not None else get_property_cache()
        self.hub = hub if hub is not None else get_notification_hub()
        self.chat_service = chat_service

    def _invalidate(self, property_id: Optional[uuid.UUID] = None) -> None:
        if property_id is not None:
            self.cache.delete_data(PROPERTIES, str(property_id))
        self.cache.clear_store(FEATURED_PROPERTIES)

    async def get_active_property(self, property_id: uuid.UUID) -> Property:
        """
        Raises:
            PropertyNotFoundError: If the listing does not exist or is inactive
        """
        prop = await self.property_repo.get_active(property_id)
        if prop is None:
            raise PropertyNotFoundError(str(property_id))
        return prop

    async def _get_owned_property(self, property_id: uuid.UUID, current_user: User, action: str) -> Property:
        prop = await self.property_repo.get_by_id(property_id)
        if prop is None or not prop.is_active:
            raise PropertyNotFoundError(str(property_id))
        if not current_user.can_manage(prop.owner_id):
            logger.warning(f"User {current_user.id} tried to {action} property {property_id}")
            raise InsufficientPermissionsError(f"{action} this property")
        return prop

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a listing owned by ``current_user`` and notify matching subscribers.

        Raises:
            ValidationError: If model-level validation rejects the data
        """
        try:
            create_data = property_data.model_dump()
            create_data["owner_id"] = current_user.id
            prop = await self.property_repo.create_property(create_data)
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

        self._invalidate()
        delivered = await self.hub.broadcast_property(prop)
        logger.info(f"Property created by {current_user.username}: {prop.id} (notified {delivered})")
        return prop

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Raises:
            PropertyNotFoundError: If the listing does not exist
            InsufficientPermissionsError: If the caller is neither owner nor admin
            ValidationError: If the merged listing fails validation
        """
        try:
            prop = await self._get_owned_property(property_id, current_user, "update")
            update_data = property_data.model_dump(exclude_unset=True, exclude_none=True)
            if not update_data:
                return prop

            merged = {**prop.to_dict(), **update_data}
            merged.pop("id", None)
            merged.pop("owner_id", None)
            merged.pop("created_at", None)
            merged.pop("updated_at", None)
            Property(**merged).validate_all()

            prop = await self.property_repo.update_instance(prop, update_data)
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        self._invalidate(property_id)
        logger.info(f"Property {property_id} updated by {current_user.username}")
        return prop

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """Soft delete: the row stays with ``is_active`` set to False."""
        try:
            prop = await self._get_owned_property(property_id, current_user, "delete")
            await self.property_repo.update_instance(prop, {"is_active": False})
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

        self._invalidate(property_id)
        logger.info(f"Property {property_id} deactivated by {current_user.username}")

    async def get_property_detail(self, property_id: uuid.UUID) -> Dict[str, Any]:
        """Serialized active listing, served from the cache while fresh."""
        async def fetch():
            prop = await self.property_repo.get_active(property_id)
            return serialize(prop) if prop else None

        data = await self.cache.get_or_fetch(PROPERTIES, str(property_id), fetch)
        if data is None:
            raise PropertyNotFoundError(str(property_id))
        return data

    async def get_featured(self, limit: int = 6) -> List[Dict[str, Any]]:
        async def fetch():
            return [serialize(p) for p in await self.property_repo.get_featured_properties(limit)]

        return await self.cache.get_or_fetch(FEATURED_PROPERTIES, f"featured:{limit}", fetch)

    async def list_properties(self, limit: int = 20, offset: int = 0) -> Tuple[List[Property], int]:
        return await self.property_repo.search_properties(PropertySearchFilters(), skip=offset, limit=limit)

    async def compare_properties(self, property_ids: List[uuid.UUID]) -> List[Property]:
        """Active listings for ``property_ids`` in request order; unknown ids are dropped."""
        found = {p.id: p for p in await self.property_repo.get_active_by_ids(property_ids)}
        ordered = []
        for property_id in property_ids:
            prop = found.pop(property_id, None)
            if prop is not None:
                ordered.append(prop)
        return ordered

    async def search_properties(
        self,
        request: PropertySearchRequest,
        current_user: Optional[User] = None
    ) -> Tuple[List[Property], int]:
        """Search active listings; authenticated searches are saved to history."""
        filters = PropertySearchFilters(
            location=request.location,
            property_type=request.property_type,
            min_price=request.min_price,
            max_price=request.max_price,
            min_beds=request.min_beds,
            min_baths=request.min_baths,
            min_sqft=request.min_sqft,
            max_sqft=request.max_sqft,
            features=request.features,
        )
        properties, total = await self.property_repo.search_properties(
            filters, skip=request.offset, limit=request.limit
        )

        if current_user is not None:
            await self.search_repo.record(current_user.id, request.to_query())

        logger.debug(f"Search returned {len(properties)} of {total} properties")
        return properties, total

    async def get_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = 5.0,
        limit: int = 20
    ) -> List[Tuple[Property, float]]:
        return await self.property_repo.get_nearby_properties(latitude, longitude, radius_km, limit)

    async def get_user_properties(
        self,
        current_user: User,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Property], int]:
        """The caller's listings, including deactivated ones."""
        return await self.property_repo.get_properties_by_owner(
            current_user.id, skip=offset, limit=limit, include_inactive=True
        )

    async def bulk_upload(self, items: List[Dict[str, Any]], current_user: User) -> Dict[str, Any]:
        """
        Create several listings, validating each one on its own.

        Raises:
            PremiumFeatureRequiredError: If the caller has no premium access
        """
        if not current_user.has_premium_access:
            raise PremiumFeatureRequiredError("Bulk upload")

        created: List[Property] = []
        errors: List[Dict[str, Any]] = []

        for index, item in enumerate(items):
            try:
                property_data = PropertyCreate.model_validate(item)
                create_data = property_data.model_dump()
                create_data["owner_id"] = current_user.id
                created.append(await self.property_repo.create_property(create_data))
            except PydanticValidationError as e:
                errors.append({"index": index, "error": _validation_message(e)})
            except ValueError as e:
                errors.append({"index": index, "error": str(e)})
            except Exception as e:
                logger.error(f"Bulk upload item {index} failed: {e}")
                errors.append({"index": index, "error": f"Failed to create property: {str(e)}"})

        if created:
            self._invalidate()
            for prop in created:
                await self.hub.broadcast_property(prop)

        logger.info(
            f"Bulk upload by {current_user.username}: {len(created)} created, {len(errors)} failed"
        )
        return {
            "successful": len(created),
            "failed": len(errors),
            "errors": errors,
            "created": created,
        }

    async def get_recommended(self, current_user: User, limit: int = 10) -> List[Property]:
        """
        Listings similar to the caller's favorites and recent searches.

        Favorited listings are excluded. Falls back to the newest listings when
        there is nothing to go on or nothing matches.
        """
        favorites = await self.favorite_repo.get_user_favorites(current_user.id)
        searches = await self.search_repo.get_recent(current_user.id, limit=RECENT_SEARCHES)

        property_types = []
        cities = []
        for favorite in favorites:
            if favorite.property is not None:
                property_types.append(favorite.property.property_type)
                cities.append(favorite.property.city)
        for search in searches:
            query = search.query or {}
            if query.get("property_type") in {t.value for t in PropertyType}:
                property_types.append(PropertyType(query["property_type"]))
            if query.get("location"):
                cities.append(query["location"])

        exclude_ids = [favorite.property_id for favorite in favorites]
        recommended: List[Property] = []
        if property_types or cities:
            recommended = await self.property_repo.get_recommended(
                list(dict.fromkeys(property_types)), list(dict.fromkeys(cities)), exclude_ids, limit
            )

        if not recommended:
            newest, _ = await self.property_repo.search_properties(
                PropertySearchFilters(), skip=0, limit=limit + len(exclude_ids)
            )
            excluded = set(exclude_ids)
            recommended = [p for p in newest if p.id not in excluded][:limit]

        return recommended

    def _template_description(self, prop: Property, searches: List[dict]) -> str:
        bedrooms = "studio" if prop.bedrooms == 0 else f"{prop.bedrooms}-bedroom"
        text = (
            f"{prop.title}: a {bedrooms} {prop.property_type.value} in {prop.city}, {prop.state} "
            f"with {prop.bathrooms:g} bathrooms and {prop.square_feet:,} sq ft, listed at ${prop.price:,}."
        )
        if prop.features:
            text += f" Features include {', '.join(prop.features[:5])}."
        locations = [s.get("location") for s in searches if s.get("location")]
        if any(loc.lower() in prop.city.lower() or loc.lower() in prop.state.lower() for loc in locations):
            text += f" It is in {prop.city}, one of the areas you have been searching."
        return text

    async def get_personalized_description(self, property_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        """
        Description tailored to the caller's recent searches.

        Raises:
            PremiumFeatureRequiredError: For premium listings when the caller is on the free tier
        """
        prop = await self.get_active_property(property_id)
        if prop.is_premium and not current_user.has_premium_access:
            raise PremiumFeatureRequiredError("Personalized descriptions of premium listings")

        searches = [s.query or {} for s in await self.search_repo.get_recent(current_user.id, RECENT_SEARCHES)]

        description = None
        if self.chat_service is not None:
            description = await self.chat_service.personalized_description(prop, searches)

        if description:
            return {"property_id": str(prop.id), "description": description, "personalized": True}
        return {
            "property_id": str(prop.id),
            "description": self._template_description(prop, searches),
            "personalized": False,
        }

    async def predict_value(self, property_id: uuid.UUID, years: int, current_user: User) -> Dict[str, Any]:
        """
        Project a listing's value ``years`` ahead.

        The base value blends the asking price with the average price per
        square foot of active comparables (same city and type); growth is the
        mean neighborhood growth of the city, or 3% without data.

        Raises:
            PremiumFeatureRequiredError: If the caller has no premium access
            BadRequestError: If ``years`` is outside 1-10
        """
        if not current_user.has_premium_access:
            raise PremiumFeatureRequiredError("Value prediction")
        if not 1 <= years <= MAX_PREDICTION_YEARS:
            raise BadRequestError(f"years must be between 1 and {MAX_PREDICTION_YEARS}")

        prop = await self.get_active_property(property_id)

        comparables, _ = await self.property_repo.search_properties(
            PropertySearchFilters(location=prop.city, property_type=prop.property_type),
            skip=0,
            limit=500,
        )
        comparables = [
            p for p in comparables
            if p.id != prop.id and p.city.lower() == prop.city.lower() and p.square_feet > 0
        ]

        price_per_sqft = None
        base_value = float(prop.price)
        if comparables:
            price_per_sqft = sum(p.price / p.square_feet for p in comparables) / len(comparables)
            base_value = (prop.price + price_per_sqft * prop.square_feet) / 2

        growth_values = [n.growth for n in await self.neighborhood_repo.get_by_city(prop.city) if n.growth is not None]
        growth = sum(growth_values) / len(growth_values) if growth_values else DEFAULT_ANNUAL_GROWTH

        current_year = datetime.now(timezone.utc).year
        projection = [
            {"year": current_year + offset, "value": int(round(base_value * (1 + growth) ** offset))}
            for offset in range(1, years + 1)
        ]

        return {
            "property_id": str(prop.id),
            "current_price": prop.price,
            "years": years,
            "annual_growth_rate": round(growth, 4),
            "predicted_value": projection[-1]["value"],
            "comparable_count": len(comparables),
            "comparable_price_per_sqft": round(price_per_sqft, 2) if price_per_sqft is not None else None,
            "projection": projection,
        }
