"""
Tests for Stripe payments: form encoding, webhook verification and the subscription lifecycle.
"""

import json
import time
import httpx
import pytest
from urllib.parse import parse_qs

from inmobi.config import settings
from inmobi.models.user import SubscriptionTier, User
from inmobi.services.payment import (
    PaymentService,
    StripeClient,
    compute_signature,
    encode_form,
    to_cents,
    verify_webhook_signature,
)
from inmobi.utils.exceptions import BadRequestError, ExternalServiceError, ServiceUnavailableError

WEBHOOK_SECRET = "whsec_test"


def signed_header(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f"t={timestamp},v1={compute_signature(payload, timestamp, secret)}"


class FakeStripe:
    """MockTransport handler keyed by (method, path)."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.routes[(request.method, request.url.path)]
        return httpx.Response(200, json=body)

    def form(self, index: int) -> dict:
        return {k: v[0] for k, v in parse_qs(self.requests[index].content.decode()).items()}


class TestHelpers:
    @pytest.mark.parametrize("amount,cents", [(19.99, 1999), (0.005, 1), (10, 1000), (1.005, 101)])
    def test_to_cents(self, amount, cents):
        assert to_cents(amount) == cents

    def test_encode_form(self):
        encoded = encode_form({
            "customer": "cus_1",
            "items": [{"price": "price_a"}],
            "metadata": {"user_id": "u1"},
            "expand": ["latest_invoice.payment_intent"],
            "automatic_payment_methods": {"enabled": True},
            "description": None,
        })
        assert encoded == {
            "customer": "cus_1",
            "items[0][price]": "price_a",
            "metadata[user_id]": "u1",
            "expand[0]": "latest_invoice.payment_intent",
            "automatic_payment_methods[enabled]": "true",
        }


class TestWebhookSignature:
    def test_valid_signature(self):
        payload = json.dumps({"type": "ping"})
        event = verify_webhook_signature(payload.encode(), signed_header(payload), WEBHOOK_SECRET)
        assert event == {"type": "ping"}

    def test_any_v1_may_match(self):
        payload = "{}"
        timestamp = int(time.time())
        header = f"t={timestamp},v1=deadbeef,v1={compute_signature(payload, timestamp, WEBHOOK_SECRET)}"
        assert verify_webhook_signature(payload.encode(), header, WEBHOOK_SECRET) == {}

    def test_tampered_payload(self):
        header = signed_header('{"amount": 1}')
        with pytest.raises(BadRequestError, match="verification failed"):
            verify_webhook_signature(b'{"amount": 100}', header, WEBHOOK_SECRET)

    def test_wrong_secret(self):
        payload = "{}"
        with pytest.raises(BadRequestError):
            verify_webhook_signature(payload.encode(), signed_header(payload, secret="other"), WEBHOOK_SECRET)

    def test_expired_timestamp(self):
        payload = "{}"
        header = signed_header(payload, timestamp=1_000_000)
        with pytest.raises(BadRequestError, match="tolerance"):
            verify_webhook_signature(payload.encode(), header, WEBHOOK_SECRET, now=1_000_000 + 301)

    @pytest.mark.parametrize("header", [None, "", "v1=abc", "t=abc,v1=def", "t=123"])
    def test_malformed_header(self, header):
        with pytest.raises(BadRequestError):
            verify_webhook_signature(b"{}", header, WEBHOOK_SECRET)

    def test_non_utf8_payload(self):
        with pytest.raises(BadRequestError, match="UTF-8"):
            verify_webhook_signature(b"\xff\xfe{}", signed_header("{}"), WEBHOOK_SECRET)

    @pytest.mark.parametrize("payload", ["[1, 2]", '"event"', "null"])
    def test_non_object_event(self, payload):
        with pytest.raises(BadRequestError, match="JSON object"):
            verify_webhook_signature(payload.encode(), signed_header(payload), WEBHOOK_SECRET)


class TestPaymentService:
    """Subscription lifecycle against a fake Stripe."""

    def test_plans(self, db_session):
        plans = PaymentService(db_session).get_plans()

        assert [plan["tier"] for plan in plans] == ["free", "premium", "enterprise"]
        assert plans[0]["price_id"] is None
        assert plans[1]["price_id"] == settings.stripe_premium_price_id
        assert plans[2]["price"] == 49.99

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self, db_session, test_user: User, monkeypatch):
        monkeypatch.setattr(settings, "stripe_secret_key", None)
        with pytest.raises(ServiceUnavailableError):
            await PaymentService(db_session).create_payment_intent(test_user, 10)

    @pytest.mark.asyncio
    async def test_create_payment_intent(self, db_session, test_user: User):
        fake = FakeStripe({("POST", "/v1/payment_intents"): {"id": "pi_1", "client_secret": "pi_1_secret"}})
        service = PaymentService(db_session, StripeClient("sk_test", transport=httpx.MockTransport(fake)))

        result = await service.create_payment_intent(test_user, 19.99, "Featured listing")

        assert result == {"client_secret": "pi_1_secret", "payment_intent_id": "pi_1", "amount": 1999, "currency": "usd"}
        form = fake.form(0)
        assert form["amount"] == "1999"
        assert form["metadata[user_id]"] == str(test_user.id)
        assert fake.requests[0].headers["Authorization"] == "Bearer sk_test"

    @pytest.mark.asyncio
    async def test_non_object_response(self, db_session, test_user: User):
        fake = FakeStripe({("POST", "/v1/payment_intents"): ["pi_1"]})
        service = PaymentService(db_session, StripeClient("sk_test", transport=httpx.MockTransport(fake)))

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.create_payment_intent(test_user, 19.99)
        assert exc_info.value.provider_status == 200

    @pytest.mark.asyncio
    async def test_subscription_lifecycle(self, db_session, test_user: User):
        fake = FakeStripe({
            ("POST", "/v1/customers"): {"id": "cus_1"},
            ("POST", "/v1/subscriptions"): {
                "id": "sub_1",
                "status": "active",
                "current_period_end": 1_900_000_000,
                "latest_invoice": {"payment_intent": {"client_secret": "seti_secret"}},
            },
            ("GET", "/v1/subscriptions/sub_1"): {"id": "sub_1", "items": {"data": [{"id": "si_1"}]}},
            ("POST", "/v1/subscriptions/sub_1"): {"id": "sub_1", "status": "active"},
            ("DELETE", "/v1/subscriptions/sub_1"): {"id": "sub_1", "status": "canceled"},
        })
        service = PaymentService(db_session, StripeClient("sk_test", transport=httpx.MockTransport(fake)))

        created = await service.create_subscription(test_user, settings.stripe_premium_price_id)

        assert created == {
            "subscription_id": "sub_1",
            "status": "active",
            "tier": SubscriptionTier.PREMIUM,
            "client_secret": "seti_secret",
        }
        assert test_user.stripe_customer_id == "cus_1"
        assert test_user.subscription_tier == SubscriptionTier.PREMIUM
        assert test_user.subscription_expires_at.year == 2030
        assert fake.form(1)["items[0][price]"] == settings.stripe_premium_price_id

        with pytest.raises(BadRequestError, match="already has"):
            await service.create_subscription(test_user, settings.stripe_premium_price_id)

        updated = await service.update_subscription(test_user, settings.stripe_enterprise_price_id)
        assert updated["tier"] == SubscriptionTier.ENTERPRISE
        assert fake.form(3)["items[0][id]"] == "si_1"

        canceled = await service.cancel_subscription(test_user)
        assert canceled["tier"] == SubscriptionTier.FREE
        assert canceled["status"] == "canceled"
        assert test_user.stripe_subscription_id is None

    @pytest.mark.asyncio
    async def test_incomplete_subscription_keeps_free_tier(self, db_session, test_user: User):
        fake = FakeStripe({
            ("POST", "/v1/customers"): {"id": "cus_2"},
            ("POST", "/v1/subscriptions"): {"id": "sub_2", "status": "incomplete"},
        })
        service = PaymentService(db_session, StripeClient("sk_test", transport=httpx.MockTransport(fake)))

        created = await service.create_subscription(test_user, settings.stripe_enterprise_price_id)

        assert created["client_secret"] is None
        assert test_user.subscription_tier == SubscriptionTier.FREE
        assert test_user.subscription_status == "incomplete"

    @pytest.mark.asyncio
    async def test_unknown_price(self, db_session, test_user: User):
        service = PaymentService(db_session, StripeClient("sk_test", transport=httpx.MockTransport(FakeStripe({}))))
        with pytest.raises(BadRequestError, match="Unknown price"):
            await service.create_subscription(test_user, "price_nope")

    @pytest.mark.asyncio
    async def test_cancel_without_subscription(self, db_session, test_user: User):
        with pytest.raises(BadRequestError):
            await PaymentService(db_session).cancel_subscription(test_user)


class TestWebhookHandling:
    @pytest.fixture(autouse=True)
    def webhook_secret(self, monkeypatch):
        monkeypatch.setattr(settings, "stripe_webhook_secret", WEBHOOK_SECRET)

    async def subscribed_user(self, user_repository, user: User) -> User:
        return await user_repository.update_instance(user, {
            "stripe_customer_id": "cus_9",
            "stripe_subscription_id": "sub_9",
            "subscription_tier": SubscriptionTier.PREMIUM,
            "subscription_status": "active",
        })

    async def deliver(self, db_session, event: dict):
        payload = json.dumps(event)
        return await PaymentService(db_session).handle_webhook(payload.encode(), signed_header(payload))

    @pytest.mark.asyncio
    async def test_not_configured(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "stripe_webhook_secret", None)
        with pytest.raises(ServiceUnavailableError):
            await PaymentService(db_session).handle_webhook(b"{}", "t=1,v1=x")

    @pytest.mark.asyncio
    async def test_malformed_data_is_ignored(self, db_session):
        result = await self.deliver(db_session, {"type": "customer.subscription.deleted", "data": [1]})
        assert result == ("customer.subscription.deleted", False)

    @pytest.mark.asyncio
    async def test_subscription_updated_changes_tier(self, db_session, user_repository, test_user: User):
        await self.subscribed_user(user_repository, test_user)

        result = await self.deliver(db_session, {
            "type": "customer.subscription.updated",
            "data": {"object": {
                "id": "sub_9",
                "customer": "cus_9",
                "status": "active",
                "items": {"data": [{"price": {"id": settings.stripe_enterprise_price_id}, "current_period_end": 1_900_000_000}]},
            }},
        })

        assert result == ("customer.subscription.updated", True)
        assert test_user.subscription_tier == SubscriptionTier.ENTERPRISE
        assert test_user.subscription_expires_at is not None

    @pytest.mark.asyncio
    async def test_unpaid_subscription_downgrades(self, db_session, user_repository, test_user: User):
        await self.subscribed_user(user_repository, test_user)

        await self.deliver(db_session, {
            "type": "customer.subscription.updated",
            "data": {"object": {"id": "sub_9", "status": "unpaid"}},
        })

        assert test_user.subscription_tier == SubscriptionTier.FREE
        assert test_user.subscription_status == "unpaid"

    @pytest.mark.asyncio
    async def test_subscription_deleted(self, db_session, user_repository, test_user: User):
        await self.subscribed_user(user_repository, test_user)

        result = await self.deliver(db_session, {
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_9", "customer": "cus_9"}},
        })

        assert result[1] is True
        assert test_user.subscription_tier == SubscriptionTier.FREE
        assert test_user.stripe_subscription_id is None

    @pytest.mark.asyncio
    async def test_payment_failed_by_customer(self, db_session, user_repository, test_user: User):
        await self.subscribed_user(user_repository, test_user)

        await self.deliver(db_session, {
            "type": "invoice.payment_failed",
            "data": {"object": {"customer": "cus_9"}},
        })

        assert test_user.subscription_status == "past_due"
        assert test_user.subscription_tier == SubscriptionTier.PREMIUM

    @pytest.mark.asyncio
    async def test_unknown_user_and_event(self, db_session):
        assert await self.deliver(db_session, {
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_unknown"}},
        }) == ("customer.subscription.deleted", False)
        assert await self.deliver(db_session, {"type": "charge.succeeded", "data": {"object": {}}}) == (
            "charge.succeeded",
            False,
        )
