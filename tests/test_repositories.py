"""
Tests for repository classes: generic CRUD, property filtering and statistics queries.
"""

import pytest
import uuid

from inmobi.models.property import PropertyType
from inmobi.models.user import UserRole, SubscriptionTier
from inmobi.repositories.favorite import FavoriteRepository
from inmobi.repositories.property import PropertyRepository, PropertySearchFilters, haversine_km
from inmobi.repositories.user import UserRepository
from tests.conftest import UserFactory, PropertyFactory, TEST_PASSWORD


class TestBaseRepository:
    """Generic operations exercised through UserRepository."""

    async def test_create_and_get(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="Mixed@Example.com")
        assert user.id is not None
        assert user.created_at is not None
        assert user.email == "mixed@example.com"

        fetched = await user_repository.get_by_id(user.id)
        assert fetched.username == user.username

    async def test_get_missing(self, user_repository: UserRepository):
        assert await user_repository.get_by_id(uuid.uuid4()) is None

    async def test_update_skips_none(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, full_name="Before")
        updated = await user_repository.update(user.id, {"full_name": "After", "bio": None})
        assert updated.full_name == "After"
        assert await user_repository.update(uuid.uuid4(), {"full_name": "x"}) is None

    async def test_delete_and_count(self, user_repository: UserRepository):
        first = await UserFactory.create_user(user_repository)
        await UserFactory.create_user(user_repository)
        assert await user_repository.count() == 2

        assert await user_repository.delete(first.id) is True
        assert await user_repository.delete(first.id) is False
        assert await user_repository.exists(first.id) is False
        assert await user_repository.count() == 1

    async def test_get_multi_filters(self, user_repository: UserRepository):
        await UserFactory.create_user(user_repository, role=UserRole.AGENT)
        await UserFactory.create_user(user_repository, role=UserRole.ADMIN)
        await UserFactory.create_user(user_repository)

        staff = await user_repository.get_multi(filters={"role": [UserRole.AGENT, UserRole.ADMIN]})
        assert len(staff) == 2

    async def test_get_by_unknown_field(self, user_repository: UserRepository):
        with pytest.raises(ValueError):
            await user_repository.get_by_field("shoe_size", 42)


class TestUserRepository:
    async def test_authenticate_by_email_or_username(self, user_repository: UserRepository, test_user):
        assert (await user_repository.authenticate_user("buyer", TEST_PASSWORD)).id == test_user.id
        assert (await user_repository.authenticate_user("BUYER@test.com", TEST_PASSWORD)).id == test_user.id
        assert await user_repository.authenticate_user("buyer", "wrong-password") is None
        assert await user_repository.authenticate_user("nobody", TEST_PASSWORD) is None

    async def test_user_statistics(self, user_repository: UserRepository, test_user, test_agent, test_premium_user, test_inactive_user):
        stats = await user_repository.get_user_statistics()
        assert stats["total_users"] == 4
        assert stats["inactive_users"] == 1
        assert stats["users_by_role"] == {"user": 3, "agent": 1, "admin": 0}
        assert stats["users_by_tier"]["premium"] == 1
        assert stats["recent_registrations"] == 4

    async def test_list_users_by_tier(self, user_repository: UserRepository, test_user, test_premium_user):
        users, total = await user_repository.list_users(tier=SubscriptionTier.PREMIUM)
        assert total == 1
        assert users[0].username == "premium"


class TestPropertyRepository:
    async def test_create_rejects_invalid(self, property_repository: PropertyRepository, test_agent):
        with pytest.raises(ValueError):
            await PropertyFactory.create_property(property_repository, test_agent.id, bedrooms=-1)

    async def test_search_filters(self, property_repository: PropertyRepository, test_agent):
        await PropertyFactory.create_property(property_repository, test_agent.id)
        await PropertyFactory.create_property(
            property_repository, test_agent.id,
            title="City Apartment", property_type=PropertyType.APARTMENT,
            price=250000, bedrooms=1, bathrooms=1.0, square_feet=700, features=["Gym"],
        )

        results, total = await property_repository.search_properties(PropertySearchFilters(min_beds=2))
        assert total == 1
        assert results[0].title == "Sunny Family House"

        results, total = await property_repository.search_properties(
            PropertySearchFilters(property_type=PropertyType.APARTMENT, max_sqft=800)
        )
        assert [p.title for p in results] == ["City Apartment"]

        _, total = await property_repository.search_properties(PropertySearchFilters(location="787"))
        assert total == 2

        _, total = await property_repository.search_properties(PropertySearchFilters(features=["gym", "garage"]))
        assert total == 0

    async def test_inactive_listings_hidden(self, property_repository: PropertyRepository, test_agent):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id)
        await property_repository.update_instance(prop, {"is_active": False})

        assert await property_repository.get_active(prop.id) is None
        _, total = await property_repository.search_properties(PropertySearchFilters())
        assert total == 0
        _, total = await property_repository.get_properties_by_owner(test_agent.id, include_inactive=True)
        assert total == 1

    async def test_nearby_sorted_by_distance(self, property_repository: PropertyRepository, test_agent):
        await PropertyFactory.create_property(property_repository, test_agent.id, title="Far", latitude=30.30, longitude=-97.70)
        await PropertyFactory.create_property(property_repository, test_agent.id, title="Near")
        await PropertyFactory.create_property(property_repository, test_agent.id, title="No Coordinates", latitude=None, longitude=None)

        nearby = await property_repository.get_nearby_properties(30.2672, -97.7431, radius_km=10)
        assert [prop.title for prop, _ in nearby] == ["Near", "Far"]
        assert nearby[0][1] == 0.0

    def test_haversine(self):
        assert 280 < haversine_km(30.2672, -97.7431, 32.7767, -96.7970) < 300
        assert haversine_km(10.0, 10.0, 10.0, 10.0) == 0.0

    async def test_property_statistics(self, property_repository: PropertyRepository, test_agent, test_admin):
        await PropertyFactory.create_property(property_repository, test_agent.id, price=400000)
        await PropertyFactory.create_property(property_repository, test_agent.id, price=600000, is_premium=True)
        await PropertyFactory.create_property(property_repository, test_admin.id, price=100000)

        stats = await property_repository.get_property_statistics(owner_id=test_agent.id)
        assert stats["total_properties"] == 2
        assert stats["premium_properties"] == 1
        assert stats["properties_by_type"] == {"house": 2}
        assert stats["price_statistics"]["avg_price"] == 500000

    async def test_sitemap_entries(self, property_repository: PropertyRepository, test_agent):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id)
        entries = await property_repository.get_sitemap_entries()
        assert entries[0][0] == prop.id


class TestFavoriteRepository:
    async def test_favorites(self, db_session, test_user, test_property):
        repo = FavoriteRepository(db_session)
        await repo.create({"user_id": test_user.id, "property_id": test_property.id})

        assert await repo.count_for_user(test_user.id) == 1
        assert await repo.get_favorite_property_ids(test_user.id) == [test_property.id]
        assert await repo.remove(test_user.id, test_property.id) is True
        assert await repo.get_favorite(test_user.id, test_property.id) is None
