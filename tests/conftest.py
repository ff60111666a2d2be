"""
Test configuration and fixtures for the Inmobi API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="inmobi-uploads-"))
os.environ.setdefault("SITEMAP_DIR", tempfile.mkdtemp(prefix="inmobi-sitemaps-"))

import pytest
import uuid
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from inmobi.main import app
from inmobi.database import Base, build_engine, get_db
from inmobi.models.user import User, UserRole, SubscriptionTier
from inmobi.models.property import Property, PropertyType
from inmobi.repositories.user import UserRepository
from inmobi.repositories.property import PropertyRepository
from inmobi.services.auth import AuthService
from inmobi.services.cache import property_cache
from inmobi.services.geocoding import geocode_cache
from inmobi.services.notifications import notification_hub
from inmobi.utils.auth import create_access_token


TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_process_state():
    """Caches and the notification hub are process-wide; start every test empty."""
    property_cache.clear_all()
    geocode_cache.clear_all()
    notification_hub._clients.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client


# Repository and service fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        subscription_tier: SubscriptionTier = SubscriptionTier.FREE,
        is_active: bool = True
    ) -> dict:
        suffix = uuid.uuid4().hex[:8]
        return {
            "username": username or f"user{suffix}",
            "email": email or f"test{suffix}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "subscription_tier": subscription_tier,
            "is_active": is_active,
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(**overrides) -> dict:
        data = {
            "title": "Sunny Family House",
            "description": "Three bedrooms close to the park",
            "price": 450000,
            "address": "12 Elm Street",
            "city": "Austin",
            "state": "TX",
            "zip_code": "78701",
            "latitude": 30.2672,
            "longitude": -97.7431,
            "bedrooms": 3,
            "bathrooms": 2.0,
            "square_feet": 1800,
            "property_type": PropertyType.HOUSE,
            "year_built": 2005,
            "features": ["Garage", "Garden"],
            "images": [],
            "is_premium": False,
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_property(property_repo: PropertyRepository, owner_id: uuid.UUID, **overrides) -> Property:
        data = PropertyFactory.create_property_data(**overrides)
        data["owner_id"] = owner_id
        return await property_repo.create_property(data)

    @staticmethod
    def api_payload(**overrides) -> dict:
        data = PropertyFactory.create_property_data(**overrides)
        data["property_type"] = PropertyType(data["property_type"]).value
        return data


# Common test fixtures
@pytest.fixture
async def test_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, username="buyer", email="buyer@test.com", full_name="Test Buyer")


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, username="agent", email="agent@test.com", full_name="Test Agent", role=UserRole.AGENT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, username="admin", email="admin@test.com", full_name="Test Admin", role=UserRole.ADMIN
    )


@pytest.fixture
async def test_premium_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        username="premium",
        email="premium@test.com",
        full_name="Premium Buyer",
        subscription_tier=SubscriptionTier.PREMIUM,
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository, username="inactive", email="inactive@test.com", is_active=False
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_agent: User) -> Property:
    return await PropertyFactory.create_property(property_repository, test_agent.id)


def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(test_user: User) -> dict:
    return auth_headers(test_user)


@pytest.fixture
def agent_headers(test_agent: User) -> dict:
    return auth_headers(test_agent)


@pytest.fixture
def admin_headers(test_admin: User) -> dict:
    return auth_headers(test_admin)


@pytest.fixture
def premium_headers(test_premium_user: User) -> dict:
    return auth_headers(test_premium_user)
