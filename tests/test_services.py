"""
Service layer tests.
Exercise business rules against a real in-memory database.
"""

import httpx
import json
import pytest
import uuid
from datetime import date, datetime, timedelta, timezone

from inmobi.models.message import MessageStatus
from inmobi.models.property import PropertyType
from inmobi.models.tour import TourStatus
from inmobi.models.user import User, UserRole
from inmobi.repositories.neighborhood import NeighborhoodRepository
from inmobi.schemas.auth import RegisterRequest
from inmobi.schemas.draft import DraftCreate, DraftUpdate
from inmobi.schemas.message import MessageCreate
from inmobi.schemas.property import PropertyCreate, PropertySearchRequest, PropertyUpdate
from inmobi.schemas.tour import TourCreate, TourUpdate
from inmobi.services.cache import FEATURED_PROPERTIES, PROPERTIES, PropertyCache
from inmobi.services.dashboard import DashboardService
from inmobi.services.draft import DraftService
from inmobi.services.email import EmailService
from inmobi.services.favorite import FREE_TIER_FAVORITES_LIMIT, FavoriteService
from inmobi.services.market import MarketService, outlook_for
from inmobi.services.message import MessageService
from inmobi.services.notifications import NotificationHub
from inmobi.services.property import PropertyService, parse_compare_ids
from inmobi.services.tour import ALL_SLOTS, TourService, build_slots, slot_has_started
from inmobi.utils.exceptions import (
    BadRequestError,
    DuplicateResourceError,
    InactiveUserError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PremiumFeatureRequiredError,
    PropertyNotFoundError,
    ResourceLimitExceededError,
    ValidationError,
)
from tests.conftest import TEST_PASSWORD, PropertyFactory, UserFactory


def next_week() -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=7)


@pytest.fixture
def cache():
    return PropertyCache(ttl_seconds=300)


@pytest.fixture
def property_service(db_session, cache) -> PropertyService:
    return PropertyService(db_session, cache=cache, hub=NotificationHub())


class TestAuthService:
    """Registration, login and account administration."""

    @pytest.mark.asyncio
    async def test_register_forces_user_role(self, auth_service):
        user = await auth_service.register(RegisterRequest(
            username="newbuyer",
            email="New@Example.com",
            password="strongpass1",
            full_name="New Buyer",
        ))

        assert user.role == UserRole.USER
        assert user.email == "new@example.com"

    @pytest.mark.asyncio
    async def test_register_duplicate(self, auth_service, test_user: User):
        with pytest.raises(DuplicateResourceError):
            await auth_service.register(RegisterRequest(
                username="someoneelse",
                email="buyer@test.com",
                password="strongpass1",
                full_name="Copy",
            ))

    @pytest.mark.asyncio
    async def test_login_with_username_or_email(self, auth_service, test_user: User):
        user, access_token, refresh_token = await auth_service.login("buyer", TEST_PASSWORD)
        assert user.id == test_user.id

        user, _, _ = await auth_service.login("BUYER@test.com", TEST_PASSWORD)
        assert user.id == test_user.id

        assert (await auth_service.get_current_user(access_token)).id == test_user.id
        new_access = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(new_access)).id == test_user.id

    @pytest.mark.asyncio
    async def test_refresh_rejects_access_token(self, auth_service, test_user: User):
        _, access_token, _ = await auth_service.login("buyer", TEST_PASSWORD)
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_access_token(access_token)

    @pytest.mark.asyncio
    async def test_bad_credentials(self, auth_service, test_user: User, test_inactive_user: User):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("buyer", "wrongpassword")
        with pytest.raises(InactiveUserError):
            await auth_service.login("inactive", TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_set_preferred_language(self, auth_service, test_user: User):
        user = await auth_service.set_preferred_language(test_user, "es")
        assert user.preferred_language == "es-MX"

        with pytest.raises(BadRequestError):
            await auth_service.set_preferred_language(test_user, "tlh")

    @pytest.mark.asyncio
    async def test_admin_cannot_demote_self(self, auth_service, test_admin: User, test_user: User):
        with pytest.raises(InsufficientPermissionsError):
            await auth_service.update_user_role(test_admin.id, UserRole.USER, test_admin)
        with pytest.raises(InsufficientPermissionsError):
            await auth_service.update_user_status(test_admin.id, False, test_admin)

        promoted = await auth_service.update_user_role(test_user.id, UserRole.AGENT, test_admin)
        assert promoted.role == UserRole.AGENT

    @pytest.mark.asyncio
    async def test_list_users_filters(self, auth_service, test_user: User, test_agent: User, test_admin: User):
        users, total = await auth_service.list_users(role=UserRole.AGENT)
        assert total == 1
        assert users[0].id == test_agent.id

        users, total = await auth_service.list_users(search="buyer")
        assert {u.id for u in users} == {test_user.id}


class TestPropertyService:
    """Listing CRUD, caching and discovery."""

    @pytest.mark.asyncio
    async def test_create_notifies_and_clears_featured(self, db_session, cache, test_agent: User):
        hub = NotificationHub()
        service = PropertyService(db_session, cache=cache, hub=hub)
        cache.add_or_update_data(FEATURED_PROPERTIES, "featured:6", [])

        class Socket:
            def __init__(self):
                self.sent = []

            async def send_json(self, data):
                self.sent.append(data)

        socket = Socket()
        await hub.connect(socket)
        await hub.handle_message(socket, {"type": "subscribe", "payload": {"location": "Austin"}})

        prop = await service.create_property(PropertyCreate(**PropertyFactory.api_payload()), test_agent)

        assert prop.owner_id == test_agent.id
        assert cache.get_data(FEATURED_PROPERTIES, "featured:6") is None
        assert socket.sent[-1]["type"] == "new_property"
        assert socket.sent[-1]["payload"]["property"]["id"] == str(prop.id)

    @pytest.mark.asyncio
    async def test_detail_is_cached_and_invalidated(self, property_service, cache, test_property, test_agent: User):
        first = await property_service.get_property_detail(test_property.id)
        assert first["owner"]["username"] == "agent"
        assert cache.get_data(PROPERTIES, str(test_property.id)) is not None

        await property_service.update_property(test_property.id, PropertyUpdate(price=500000), test_agent)

        assert cache.get_data(PROPERTIES, str(test_property.id)) is None
        assert (await property_service.get_property_detail(test_property.id))["price"] == 500000

    @pytest.mark.asyncio
    async def test_update_requires_owner(self, property_service, test_property, test_user: User, test_admin: User):
        with pytest.raises(InsufficientPermissionsError):
            await property_service.update_property(test_property.id, PropertyUpdate(price=1), test_user)

        updated = await property_service.update_property(test_property.id, PropertyUpdate(title="Admin edit"), test_admin)
        assert updated.title == "Admin edit"

    @pytest.mark.asyncio
    async def test_soft_delete(self, property_service, property_repository, test_property, test_agent: User):
        await property_service.delete_property(test_property.id, test_agent)

        row = await property_repository.get_by_id(test_property.id)
        assert row is not None and row.is_active is False
        with pytest.raises(PropertyNotFoundError):
            await property_service.get_property_detail(test_property.id)
        with pytest.raises(PropertyNotFoundError):
            await property_service.delete_property(test_property.id, test_agent)

        own, total = await property_service.get_user_properties(test_agent)
        assert total == 1

    @pytest.mark.asyncio
    async def test_search_filters_and_history(self, property_service, property_repository, test_agent: User, test_user: User):
        await PropertyFactory.create_property(property_repository, test_agent.id)
        condo = await PropertyFactory.create_property(
            property_repository, test_agent.id, title="Loft", property_type=PropertyType.CONDO,
            price=300000, features=["Pool", "Gym"], city="Dallas",
        )

        results, total = await property_service.search_properties(
            PropertySearchRequest(max_price=350000, features=["pool"]), test_user
        )
        assert total == 1
        assert results[0].id == condo.id

        results, total = await property_service.search_properties(PropertySearchRequest(location="austin"))
        assert total == 1

        recent = await property_service.search_repo.get_recent(test_user.id)
        assert recent[0].query == {"max_price": 350000, "features": ["pool"]}

    def test_parse_compare_ids(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        assert parse_compare_ids(f"{first}, {second},") == [first, second]
        with pytest.raises(BadRequestError):
            parse_compare_ids("")
        with pytest.raises(BadRequestError):
            parse_compare_ids("not-a-uuid")
        with pytest.raises(BadRequestError):
            parse_compare_ids(",".join(str(uuid.uuid4()) for _ in range(5)))

    @pytest.mark.asyncio
    async def test_compare_keeps_request_order(self, property_service, property_repository, test_agent: User):
        first = await PropertyFactory.create_property(property_repository, test_agent.id)
        second = await PropertyFactory.create_property(property_repository, test_agent.id)

        result = await property_service.compare_properties([second.id, uuid.uuid4(), first.id])

        assert [p.id for p in result] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_nearby(self, property_service, property_repository, test_agent: User):
        here = await PropertyFactory.create_property(property_repository, test_agent.id)
        await PropertyFactory.create_property(property_repository, test_agent.id, latitude=30.40, longitude=-97.7431)
        await PropertyFactory.create_property(property_repository, test_agent.id, latitude=None, longitude=None)

        nearby = await property_service.get_nearby(30.2672, -97.7431, radius_km=5)

        assert [(p.id, d) for p, d in nearby] == [(here.id, 0.0)]

        wide = await property_service.get_nearby(30.2672, -97.7431, radius_km=20)
        assert len(wide) == 2
        assert 14 < wide[1][1] < 15

    @pytest.mark.asyncio
    async def test_featured_only_premium(self, property_service, property_repository, test_agent: User):
        premium = await PropertyFactory.create_property(property_repository, test_agent.id, is_premium=True)
        await PropertyFactory.create_property(property_repository, test_agent.id)

        featured = await property_service.get_featured()

        assert [p["id"] for p in featured] == [str(premium.id)]

    @pytest.mark.asyncio
    async def test_bulk_upload(self, property_service, test_agent: User, test_premium_user: User):
        items = [PropertyFactory.api_payload(), PropertyFactory.api_payload(price=0), {"title": "Incomplete"}]

        with pytest.raises(PremiumFeatureRequiredError):
            await property_service.bulk_upload(items, test_agent)

        result = await property_service.bulk_upload(items, test_premium_user)

        assert result["successful"] == 1
        assert result["failed"] == 2
        assert [error["index"] for error in result["errors"]] == [1, 2]
        assert result["created"][0].owner_id == test_premium_user.id

    @pytest.mark.asyncio
    async def test_recommended_uses_favorites(self, db_session, property_service, property_repository, test_agent: User, test_user: User):
        favorite = await PropertyFactory.create_property(property_repository, test_agent.id)
        similar = await PropertyFactory.create_property(property_repository, test_agent.id, title="Another house")
        await PropertyFactory.create_property(
            property_repository, test_agent.id, city="Denver", state="CO", property_type=PropertyType.LAND
        )
        await FavoriteService(db_session).add_favorite(favorite.id, test_user)

        recommended = await property_service.get_recommended(test_user)

        assert [p.id for p in recommended] == [similar.id]

    @pytest.mark.asyncio
    async def test_personalized_description_template(self, property_service, property_repository, test_agent: User, test_user: User):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id)
        await property_service.search_repo.record(test_user.id, {"location": "Austin"})

        result = await property_service.get_personalized_description(prop.id, test_user)

        assert result["personalized"] is False
        assert "3-bedroom house in Austin, TX" in result["description"]
        assert "areas you have been searching" in result["description"]

    @pytest.mark.asyncio
    async def test_personalized_description_premium_listing(self, property_service, property_repository, test_agent: User, test_user: User):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id, is_premium=True)
        with pytest.raises(PremiumFeatureRequiredError):
            await property_service.get_personalized_description(prop.id, test_user)

    @pytest.mark.asyncio
    async def test_predict_value(self, db_session, property_service, test_property, test_user: User, test_premium_user: User):
        with pytest.raises(PremiumFeatureRequiredError):
            await property_service.predict_value(test_property.id, 5, test_user)
        with pytest.raises(BadRequestError):
            await property_service.predict_value(test_property.id, 11, test_premium_user)

        result = await property_service.predict_value(test_property.id, 2, test_premium_user)

        assert result["annual_growth_rate"] == 0.03
        assert result["comparable_count"] == 0
        assert [point["value"] for point in result["projection"]] == [463500, 477405]
        assert result["predicted_value"] == 477405

    @pytest.mark.asyncio
    async def test_predict_value_uses_comparables(self, db_session, property_service, property_repository, test_agent: User, test_premium_user: User):
        prop = await PropertyFactory.create_property(property_repository, test_agent.id, price=400000, square_feet=2000)
        await PropertyFactory.create_property(property_repository, test_agent.id, price=300000, square_feet=1000)
        await NeighborhoodRepository(db_session).create({
            "name": "Downtown", "city": "Austin", "state": "TX", "zip_code": "78701",
            "latitude": 30.27, "longitude": -97.74, "overall_score": 90, "growth": 0.05,
        })

        result = await property_service.predict_value(prop.id, 1, test_premium_user)

        # (400000 + 300 * 2000) / 2 grown by 5%
        assert result["comparable_price_per_sqft"] == 300.0
        assert result["predicted_value"] == 525000


class TestFavoriteService:
    @pytest.mark.asyncio
    async def test_free_tier_limit(self, db_session, property_repository, test_agent: User, test_user: User):
        service = FavoriteService(db_session)
        properties = [
            await PropertyFactory.create_property(property_repository, test_agent.id)
            for _ in range(FREE_TIER_FAVORITES_LIMIT + 1)
        ]
        for prop in properties[:FREE_TIER_FAVORITES_LIMIT]:
            await service.add_favorite(prop.id, test_user)

        with pytest.raises(ResourceLimitExceededError):
            await service.add_favorite(properties[-1].id, test_user)

    @pytest.mark.asyncio
    async def test_premium_has_no_limit(self, db_session, property_repository, test_agent: User, test_premium_user: User):
        service = FavoriteService(db_session)
        for _ in range(FREE_TIER_FAVORITES_LIMIT + 1):
            prop = await PropertyFactory.create_property(property_repository, test_agent.id)
            await service.add_favorite(prop.id, test_premium_user)

        assert len(await service.list_favorites(test_premium_user)) == FREE_TIER_FAVORITES_LIMIT + 1

    @pytest.mark.asyncio
    async def test_duplicate_and_missing(self, db_session, test_property, test_user: User):
        service = FavoriteService(db_session)
        favorite = await service.add_favorite(test_property.id, test_user)
        assert favorite.to_dict()["property"]["id"] == str(test_property.id)

        with pytest.raises(DuplicateResourceError):
            await service.add_favorite(test_property.id, test_user)
        with pytest.raises(PropertyNotFoundError):
            await service.add_favorite(uuid.uuid4(), test_user)

        await service.remove_favorite(test_property.id, test_user)
        with pytest.raises(NotFoundError):
            await service.remove_favorite(test_property.id, test_user)


class TestMessageService:
    @pytest.mark.asyncio
    async def test_send_and_notify(self, db_session, test_user: User, test_agent: User, test_property):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        email = EmailService(api_key="SG.test", transport=httpx.MockTransport(handler))
        service = MessageService(db_session, email_service=email)

        message = await service.send_message(MessageCreate(
            recipient_id=test_agent.id,
            property_id=test_property.id,
            subject="Viewing",
            content="Is Saturday possible?",
        ), test_user)

        assert message.status == MessageStatus.UNREAD
        assert message.to_dict(include_participants=True)["sender"]["username"] == "buyer"
        assert json.loads(requests[0].content)["personalizations"][0]["to"][0]["email"] == "agent@test.com"

        received, total = await service.list_messages(test_agent, "received")
        assert total == 1 and received[0].id == message.id
        sent, total = await service.list_messages(test_user, "sent")
        assert total == 1

    @pytest.mark.asyncio
    async def test_email_failure_does_not_fail_send(self, db_session, test_user: User, test_agent: User):
        email = EmailService(api_key="SG.test", transport=httpx.MockTransport(lambda request: httpx.Response(403)))
        service = MessageService(db_session, email_service=email)

        message = await service.send_message(
            MessageCreate(recipient_id=test_agent.id, subject="Hi", content="Hello"), test_user
        )
        assert message.id is not None

    @pytest.mark.asyncio
    async def test_rules(self, db_session, test_user: User, test_agent: User):
        service = MessageService(db_session)

        with pytest.raises(BadRequestError):
            await service.send_message(MessageCreate(recipient_id=test_user.id, subject="s", content="c"), test_user)
        with pytest.raises(NotFoundError):
            await service.send_message(MessageCreate(recipient_id=uuid.uuid4(), subject="s", content="c"), test_user)
        with pytest.raises(PropertyNotFoundError):
            await service.send_message(
                MessageCreate(recipient_id=test_agent.id, property_id=uuid.uuid4(), subject="s", content="c"), test_user
            )

    @pytest.mark.asyncio
    async def test_only_recipient_updates_status(self, db_session, test_user: User, test_agent: User):
        service = MessageService(db_session)
        message = await service.send_message(MessageCreate(recipient_id=test_agent.id, subject="s", content="c"), test_user)

        with pytest.raises(InsufficientPermissionsError):
            await service.update_status(message.id, "read", test_user)

        updated = await service.update_status(message.id, "replied", test_agent)
        assert updated.status == MessageStatus.REPLIED

    @pytest.mark.asyncio
    async def test_recipients_are_agents_and_admins(self, db_session, test_user: User, test_agent: User, test_admin: User):
        recipients = await MessageService(db_session).get_recipients(test_agent)
        assert [u.id for u in recipients] == [test_admin.id]


class TestTourService:
    def test_slots(self):
        assert build_slots("09:00", "10:30") == ["09:00", "09:30", "10:00"]
        assert ALL_SLOTS[0] == "09:00" and ALL_SLOTS[-1] == "16:30"
        assert len(ALL_SLOTS) == 16

    @pytest.mark.asyncio
    async def test_booking_removes_slot(self, db_session, test_property, test_user: User, test_agent: User):
        service = TourService(db_session)
        day = next_week()

        tour = await service.book_tour(test_property.id, TourCreate(tour_date=day, tour_time="10:30"), test_user)

        assert tour.agent_id == test_agent.id
        assert tour.status == TourStatus.PENDING
        slots = await service.get_available_slots(test_property.id, day)
        assert "10:30" not in slots and len(slots) == len(ALL_SLOTS) - 1

        with pytest.raises(BadRequestError, match="not available"):
            await service.book_tour(test_property.id, TourCreate(tour_date=day, tour_time="10:30"), test_user)

    @pytest.mark.asyncio
    async def test_past_and_invalid_slots(self, db_session, test_property, test_user: User):
        service = TourService(db_session)
        yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)

        assert await service.get_available_slots(test_property.id, yesterday) == []
        with pytest.raises(BadRequestError):
            await service.book_tour(test_property.id, TourCreate(tour_date=yesterday, tour_time="10:00"), test_user)
        with pytest.raises(BadRequestError):
            await service.book_tour(test_property.id, TourCreate(tour_date=next_week(), tour_time="17:00"), test_user)

    @pytest.mark.asyncio
    async def test_started_slots_today(self, db_session, test_property, test_user: User, monkeypatch):
        today = datetime.now(timezone.utc).date()
        midday = datetime(today.year, today.month, today.day, 12, 10, tzinfo=timezone.utc)
        monkeypatch.setattr("inmobi.services.tour._now", lambda: midday)
        service = TourService(db_session)

        slots = await service.get_available_slots(test_property.id, today)

        assert slots[0] == "12:30"
        assert "12:00" not in slots and "16:30" in slots
        with pytest.raises(BadRequestError, match="past"):
            await service.book_tour(test_property.id, TourCreate(tour_date=today, tour_time="12:00"), test_user)
        tour = await service.book_tour(test_property.id, TourCreate(tour_date=today, tour_time="12:30"), test_user)
        assert tour.tour_time == "12:30"

    def test_slot_has_started(self):
        now = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        assert slot_has_started(date(2026, 3, 1), "16:30", now)
        assert slot_has_started(date(2026, 3, 2), "10:00", now)
        assert not slot_has_started(date(2026, 3, 2), "10:30", now)
        assert not slot_has_started(date(2026, 3, 3), "09:00", now)

    @pytest.mark.asyncio
    async def test_cancel_frees_slot(self, db_session, test_property, test_user: User):
        service = TourService(db_session)
        day = next_week()
        tour = await service.book_tour(test_property.id, TourCreate(tour_date=day, tour_time="09:00"), test_user)

        cancelled = await service.cancel_tour(tour.id, test_user)

        assert cancelled.status == TourStatus.CANCELLED
        assert "09:00" in await service.get_available_slots(test_property.id, day)
        with pytest.raises(BadRequestError):
            await service.cancel_tour(tour.id, test_user)

    @pytest.mark.asyncio
    async def test_reschedule_and_confirm(self, db_session, test_property, test_user: User, test_agent: User, test_admin: User):
        service = TourService(db_session)
        day = next_week()
        tour = await service.book_tour(test_property.id, TourCreate(tour_date=day, tour_time="09:00"), test_user)

        with pytest.raises(InsufficientPermissionsError):
            await service.update_tour(tour.id, TourUpdate(status=TourStatus.CONFIRMED), test_user)

        moved = await service.update_tour(tour.id, TourUpdate(tour_time="11:00"), test_user)
        assert moved.status == TourStatus.RESCHEDULED

        confirmed = await service.update_tour(tour.id, TourUpdate(status=TourStatus.CONFIRMED), test_agent)
        assert confirmed.status == TourStatus.CONFIRMED

        assert [t.id for t in await service.list_agent_tours(test_agent)] == [tour.id]
        assert len(await service.list_agent_tours(test_admin)) == 1

    @pytest.mark.asyncio
    async def test_outsider_cannot_view(self, db_session, user_repository, test_property, test_user: User):
        service = TourService(db_session)
        tour = await service.book_tour(test_property.id, TourCreate(tour_date=next_week(), tour_time="09:00"), test_user)
        stranger = await UserFactory.create_user(user_repository)

        with pytest.raises(InsufficientPermissionsError):
            await service.get_tour(tour.id, stranger)


class TestDraftService:
    @pytest.mark.asyncio
    async def test_publish_creates_listing(self, db_session, property_service, test_agent: User):
        service = DraftService(db_session, property_service)
        draft = await service.create_draft(DraftCreate(name="Elm St", form_data=PropertyFactory.api_payload()), test_agent)

        prop = await service.publish_draft(draft.id, test_agent)

        assert prop.title == "Sunny Family House"
        assert prop.owner_id == test_agent.id
        assert await service.list_drafts(test_agent) == []

    @pytest.mark.asyncio
    async def test_incomplete_draft_is_kept(self, db_session, property_service, test_agent: User):
        service = DraftService(db_session, property_service)
        draft = await service.create_draft(DraftCreate(name="Half done", form_data={"title": "Only a title"}), test_agent)

        with pytest.raises(ValidationError) as exc_info:
            await service.publish_draft(draft.id, test_agent)

        assert any(error["field"] == "price" for error in exc_info.value.field_errors)
        assert len(await service.list_drafts(test_agent)) == 1

    @pytest.mark.asyncio
    async def test_drafts_are_private(self, db_session, property_service, test_agent: User, test_user: User):
        service = DraftService(db_session, property_service)
        draft = await service.create_draft(DraftCreate(name="Mine"), test_agent)

        with pytest.raises(NotFoundError):
            await service.get_draft(draft.id, test_user)

        updated = await service.update_draft(draft.id, DraftUpdate(name="Renamed"), test_agent)
        assert updated.name == "Renamed"

        await service.delete_draft(draft.id, test_agent)
        with pytest.raises(NotFoundError):
            await service.get_draft(draft.id, test_agent)


class TestMarketService:
    def test_outlook(self):
        assert outlook_for(0.05) == "rising"
        assert outlook_for(0.0) == "stable"
        assert outlook_for(-0.02) == "declining"

    @pytest.mark.asyncio
    async def test_trends(self, db_session, cache, property_repository, test_agent: User, test_user: User, test_premium_user: User):
        await PropertyFactory.create_property(property_repository, test_agent.id, price=400000, square_feet=2000)
        await PropertyFactory.create_property(property_repository, test_agent.id, price=500000, square_feet=2500)
        service = MarketService(db_session, cache=cache)

        with pytest.raises(PremiumFeatureRequiredError):
            await service.get_trends("Austin", test_user)
        with pytest.raises(BadRequestError):
            await service.get_trends("  ", test_premium_user)

        trends = await service.get_trends("austin", test_premium_user)

        assert trends["median_price"] == 450000
        assert trends["average_price_per_sqft"] == 200.0
        assert trends["inventory_count"] == 2
        assert len(trends["monthly"]) == 12
        assert len(trends["yearly"]) == 5
        assert trends["yearly"][-1]["listings"] == 2
        assert trends["yearly"][0]["listings"] == 0
        assert trends["forecast"] == {"annual_growth_rate": 0.03, "next_year_median_price": 463500, "outlook": "rising"}

    @pytest.mark.asyncio
    async def test_neighborhoods_ranked_and_cached(self, db_session, cache):
        repo = NeighborhoodRepository(db_session)
        for name, score, rank in [("Hyde Park", 80, 2), ("Downtown", 92, 1)]:
            await repo.create({
                "name": name, "city": "Austin", "state": "TX", "zip_code": "78701",
                "latitude": 30.3, "longitude": -97.7, "overall_score": score, "rank": rank,
            })
        service = MarketService(db_session, cache=cache)

        ranked = await service.get_neighborhoods(limit=5)
        assert [n["name"] for n in ranked] == ["Downtown", "Hyde Park"]

        await repo.create({
            "name": "East", "city": "Austin", "state": "TX", "zip_code": "78702",
            "latitude": 30.26, "longitude": -97.72, "overall_score": 99, "rank": 0,
        })
        assert len(await service.get_neighborhoods(limit=5)) == 2

        with pytest.raises(NotFoundError):
            await service.get_neighborhood(uuid.uuid4())


class TestDashboardService:
    @pytest.mark.asyncio
    async def test_user_and_agent_dashboards(self, db_session, test_property, test_user: User, test_agent: User):
        await FavoriteService(db_session).add_favorite(test_property.id, test_user)
        await MessageService(db_session).send_message(
            MessageCreate(recipient_id=test_agent.id, property_id=test_property.id, subject="s", content="c"), test_user
        )
        await TourService(db_session).book_tour(test_property.id, TourCreate(tour_date=next_week(), tour_time="09:00"), test_user)
        service = DashboardService(db_session)

        user_dashboard = await service.get_user_dashboard(test_user)
        assert user_dashboard["counts"]["favorites"] == 1
        assert user_dashboard["counts"]["upcoming_tours"] == 1
        assert user_dashboard["subscription"]["tier"].value == "free"

        agent_dashboard = await service.get_agent_dashboard(test_agent)
        assert agent_dashboard["inquiries"]["unread"] == 1
        assert agent_dashboard["inquiries"]["total"] == 1
        assert len(agent_dashboard["upcoming_tours"]) == 1
        assert agent_dashboard["listing_statistics"]["active_properties"] == 1

    @pytest.mark.asyncio
    async def test_admin_dashboard(self, db_session, test_property, test_user: User, test_admin: User):
        dashboard = await DashboardService(db_session).get_admin_dashboard()

        assert dashboard["user_statistics"]["total_users"] == 3
        assert dashboard["user_statistics"]["users_by_role"]["admin"] == 1
        assert dashboard["property_statistics"]["total_properties"] == 1
        assert dashboard["message_volume"]["total_messages"] == 0
