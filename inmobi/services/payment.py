"""
Subscriptions and one-off payments through the Stripe REST API.

Stripe takes form-encoded bodies with bracketed keys for nested values, so
payloads are flattened before sending. Webhooks are verified against the
``Stripe-Signature`` header without the Stripe SDK.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from inmobi.config import settings
from inmobi.models.user import User, SubscriptionTier
from inmobi.repositories.user import UserRepository
from inmobi.services.external import ExternalServiceClient
from inmobi.utils.exceptions import (
    APIException,
    BadRequestError,
    ExternalServiceError,
    ServiceUnavailableError,
)
import hashlib
import hmac
import httpx
import json
import logging
import time

logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300

SUBSCRIPTION_FEATURES: Dict[str, Dict[str, Any]] = {
    "free": {
        "name": "Free",
        "price": 0,
        "features": [
            "Basic property search",
            "Save up to 5 favorite properties",
            "Limited AI property insights",
            "Email support",
        ],
    },
    "premium": {
        "name": "Premium",
        "price": 19.99,
        "features": [
            "Unlimited property search",
            "Unlimited favorites",
            "Advanced AI property insights",
            "Market trend analysis",
            "Neighborhood analytics",
            "Priority email support",
            "Virtual property tours",
        ],
    },
    "enterprise": {
        "name": "Enterprise",
        "price": 49.99,
        "features": [
            "All Premium features",
            "Investment portfolio analytics",
            "ROI prediction tools",
            "Real estate market reports",
            "Dedicated account manager",
            "API access",
            "Custom integrations",
            "Team collaboration tools",
        ],
    },
}

# Stripe subscription statuses that no longer grant a paid tier
INACTIVE_STATUSES = {"canceled", "unpaid", "incomplete_expired"}


def to_cents(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def encode_form(data: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten nested dicts and lists into Stripe's bracketed form keys.

    ``{"metadata": {"user_id": "1"}, "items": [{"price": "p"}]}`` becomes
    ``{"metadata[user_id]": "1", "items[0][price]": "p"}``.
    """
    flat: Dict[str, str] = {}
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            flat.update(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, dict):
                    flat.update(encode_form(item, item_name))
                else:
                    flat[item_name] = str(item)
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


def compute_signature(payload: str, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.{payload}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None
) -> Dict[str, Any]:
    """
    Check a ``Stripe-Signature`` header and decode the event.

    Returns:
        The parsed event

    Raises:
        BadRequestError: If the header is missing or malformed, no ``v1``
            signature matches, the timestamp is outside the tolerance, or the
            payload is not JSON
    """
    if not signature_header:
        raise BadRequestError("Missing Stripe-Signature header")

    timestamp = None
    signatures: List[str] = []
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise BadRequestError("Invalid Stripe-Signature timestamp")
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise BadRequestError("Invalid Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise BadRequestError("Webhook payload is not valid UTF-8")
    expected = compute_signature(body, timestamp, secret)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise BadRequestError("Webhook signature verification failed")

    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise BadRequestError("Webhook timestamp outside the tolerance window")

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        raise BadRequestError("Webhook payload is not valid JSON")
    if not isinstance(event, dict):
        raise BadRequestError("Webhook payload is not a JSON object")
    return event


class StripeClient(ExternalServiceClient):
    """Thin wrapper over the Stripe endpoints the marketplace uses."""

    service_name = "Stripe"

    def __init__(self, secret_key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(
            settings.stripe_api_base,
            headers={"Authorization": f"Bearer {secret_key}"},
            transport=transport,
        )

    def _object(self, response: httpx.Response) -> Dict[str, Any]:
        body = self.decode_json(response)
        if not isinstance(body, dict):
            raise ExternalServiceError(self.service_name, "expected a JSON object", provider_status=response.status_code)
        return body

    async def _form(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self.request(method, path, data=encode_form(data or {}))
        return self._object(response)

    async def create_customer(self, email: str, name: str, user_id: str) -> Dict[str, Any]:
        return await self._form("POST", "/v1/customers", {
            "email": email,
            "name": name,
            "metadata": {"user_id": user_id},
        })

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Dict[str, str],
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._form("POST", "/v1/payment_intents", {
            "amount": amount_cents,
            "currency": currency,
            "description": description,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        })

    async def create_subscription(self, customer_id: str, price_id: str) -> Dict[str, Any]:
        return await self._form("POST", "/v1/subscriptions", {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "payment_behavior": "default_incomplete",
            "expand": ["latest_invoice.payment_intent"],
        })

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        response = await self.request("GET", f"/v1/subscriptions/{subscription_id}")
        return self._object(response)

    async def update_subscription(self, subscription_id: str, item_id: str, price_id: str) -> Dict[str, Any]:
        return await self._form("POST", f"/v1/subscriptions/{subscription_id}", {
            "items": [{"id": item_id, "price": price_id}],
            "proration_behavior": "create_prorations",
        })

    async def cancel_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self._form("DELETE", f"/v1/subscriptions/{subscription_id}")


def _period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    value = subscription.get("current_period_end")
    if value is None:
        # Newer API versions report the period on the subscription item
        items = (subscription.get("items") or {}).get("data") or []
        value = items[0].get("current_period_end") if items else None
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


def _first_price_id(subscription: Dict[str, Any]) -> Optional[str]:
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


class PaymentService:
    """
    Plans, payment intents, subscription lifecycle and webhook handling.

    ``stripe_client`` may be injected; otherwise one is built from
    ``STRIPE_SECRET_KEY`` and every Stripe call raises 503 without it.
    """

    def __init__(self, db_session: AsyncSession, stripe_client: Optional[StripeClient] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self._stripe = stripe_client

    @property
    def stripe(self) -> StripeClient:
        if self._stripe is None:
            if not settings.stripe_secret_key:
                raise ServiceUnavailableError("Payment processing is not configured")
            self._stripe = StripeClient(settings.stripe_secret_key)
        return self._stripe

    @staticmethod
    def price_ids() -> Dict[str, SubscriptionTier]:
        return {
            settings.stripe_premium_price_id: SubscriptionTier.PREMIUM,
            settings.stripe_enterprise_price_id: SubscriptionTier.ENTERPRISE,
        }

    def tier_for_price(self, price_id: str) -> SubscriptionTier:
        try:
            return self.price_ids()[price_id]
        except KeyError:
            raise BadRequestError(f"Unknown price: {price_id}")

    def get_plans(self) -> List[Dict[str, Any]]:
        price_by_tier = {tier.value: price_id for price_id, tier in self.price_ids().items()}
        return [
            {
                "tier": tier,
                "name": plan["name"],
                "price": plan["price"],
                "price_id": price_by_tier.get(tier),
                "features": list(plan["features"]),
            }
            for tier, plan in SUBSCRIPTION_FEATURES.items()
        ]

    def get_subscription(self, user: User) -> Dict[str, Any]:
        tier = user.subscription_tier
        return {
            "tier": tier,
            "status": user.subscription_status,
            "expires_at": user.subscription_expires_at,
            "subscription_id": user.stripe_subscription_id,
            "features": list(SUBSCRIPTION_FEATURES[tier.value]["features"]),
        }

    async def create_payment_intent(self, user: User, amount: float, description: Optional[str] = None) -> Dict[str, Any]:
        """Create a USD payment intent for ``amount`` dollars."""
        amount_cents = to_cents(amount)
        if amount_cents <= 0:
            raise BadRequestError("Amount must be at least one cent")

        intent = await self.stripe.create_payment_intent(
            amount_cents, "usd", {"user_id": str(user.id)}, description
        )
        logger.info(f"Created payment intent {intent.get('id')} for user {user.id} ({amount_cents} cents)")
        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": amount_cents,
            "currency": "usd",
        }

    async def _ensure_customer(self, user: User) -> str:
        if user.stripe_customer_id:
            return user.stripe_customer_id
        customer = await self.stripe.create_customer(user.email, user.full_name, str(user.id))
        await self.user_repo.update_instance(user, {"stripe_customer_id": customer["id"]})
        logger.info(f"Created Stripe customer {customer['id']} for user {user.id}")
        return customer["id"]

    async def create_subscription(self, user: User, price_id: str) -> Dict[str, Any]:
        """
        Start a subscription.

        Raises:
            BadRequestError: If the user already has one or the price is unknown
        """
        if user.stripe_subscription_id:
            raise BadRequestError("User already has an active subscription")
        tier = self.tier_for_price(price_id)

        customer_id = await self._ensure_customer(user)
        subscription = await self.stripe.create_subscription(customer_id, price_id)
        status = subscription.get("status")

        update_data: Dict[str, Any] = {
            "stripe_subscription_id": subscription["id"],
            "subscription_status": status,
            "subscription_expires_at": _period_end(subscription),
        }
        if status in ("active", "trialing"):
            update_data["subscription_tier"] = tier
        await self.user_repo.update_instance(user, update_data)
        logger.info(f"User {user.id} subscribed to {tier.value} ({subscription['id']}, {status})")

        client_secret = None
        invoice = subscription.get("latest_invoice")
        if isinstance(invoice, dict) and isinstance(invoice.get("payment_intent"), dict):
            client_secret = invoice["payment_intent"].get("client_secret")

        return {
            "subscription_id": subscription["id"],
            "status": status,
            "tier": tier,
            "client_secret": client_secret,
        }

    async def update_subscription(self, user: User, price_id: str) -> Dict[str, Any]:
        """Move an existing subscription to another price."""
        if not user.stripe_subscription_id:
            raise BadRequestError("User has no active subscription")
        tier = self.tier_for_price(price_id)

        current = await self.stripe.retrieve_subscription(user.stripe_subscription_id)
        items = (current.get("items") or {}).get("data") or []
        if not items:
            raise BadRequestError("Subscription has no items to update")

        subscription = await self.stripe.update_subscription(user.stripe_subscription_id, items[0]["id"], price_id)
        await self.user_repo.update_instance(user, {
            "subscription_tier": tier,
            "subscription_status": subscription.get("status"),
            "subscription_expires_at": _period_end(subscription),
        })
        logger.info(f"User {user.id} changed subscription to {tier.value}")
        return self.get_subscription(user)

    async def cancel_subscription(self, user: User) -> Dict[str, Any]:
        if not user.stripe_subscription_id:
            raise BadRequestError("User has no active subscription")

        await self.stripe.cancel_subscription(user.stripe_subscription_id)
        await self.user_repo.update_instance(user, {
            "subscription_tier": SubscriptionTier.FREE,
            "subscription_status": "canceled",
            "stripe_subscription_id": None,
        })
        logger.info(f"User {user.id} canceled their subscription")
        return self.get_subscription(user)

    async def handle_webhook(self, payload: bytes, signature_header: Optional[str]) -> Tuple[str, bool]:
        """
        Verify and apply a Stripe webhook.

        Returns:
            (event_type, handled)
        """
        if not settings.stripe_webhook_secret:
            raise ServiceUnavailableError("Stripe webhooks are not configured")

        event = verify_webhook_signature(payload, signature_header, settings.stripe_webhook_secret)
        event_type = event.get("type", "")
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            obj = {}

        try:
            if event_type == "customer.subscription.updated":
                handled = await self._on_subscription_updated(obj)
            elif event_type == "customer.subscription.deleted":
                handled = await self._on_subscription_deleted(obj)
            elif event_type == "invoice.payment_failed":
                handled = await self._on_payment_failed(obj)
            else:
                logger.debug(f"Ignoring Stripe event {event_type}")
                handled = False
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to process Stripe event {event_type}: {e}", exc_info=True)
            raise BadRequestError(f"Failed to process webhook: {str(e)}")

        return event_type, handled

    async def _find_user(self, subscription_id: Optional[str], customer_id: Optional[str]) -> Optional[User]:
        user = None
        if subscription_id:
            user = await self.user_repo.get_by_stripe_subscription_id(subscription_id)
        if user is None and customer_id:
            user = await self.user_repo.get_by_stripe_customer_id(customer_id)
        if user is None:
            logger.warning(f"No user for Stripe subscription={subscription_id} customer={customer_id}")
        return user

    async def _on_subscription_updated(self, subscription: Dict[str, Any]) -> bool:
        user = await self._find_user(subscription.get("id"), subscription.get("customer"))
        if user is None:
            return False

        status = subscription.get("status")
        update_data: Dict[str, Any] = {
            "stripe_subscription_id": subscription.get("id"),
            "subscription_status": status,
            "subscription_expires_at": _period_end(subscription),
        }
        if status in INACTIVE_STATUSES:
            update_data["subscription_tier"] = SubscriptionTier.FREE
        else:
            tier = self.price_ids().get(_first_price_id(subscription))
            if tier is not None:
                update_data["subscription_tier"] = tier

        await self.user_repo.update_instance(user, update_data)
        logger.info(f"Subscription {subscription.get('id')} updated for user {user.id}: {status}")
        return True

    async def _on_subscription_deleted(self, subscription: Dict[str, Any]) -> bool:
        user = await self._find_user(subscription.get("id"), subscription.get("customer"))
        if user is None:
            return False

        await self.user_repo.update_instance(user, {
            "subscription_tier": SubscriptionTier.FREE,
            "subscription_status": "canceled",
            "stripe_subscription_id": None,
        })
        logger.info(f"Subscription {subscription.get('id')} deleted for user {user.id}")
        return True

    async def _on_payment_failed(self, invoice: Dict[str, Any]) -> bool:
        user = await self._find_user(invoice.get("subscription"), invoice.get("customer"))
        if user is None:
            return False

        await self.user_repo.update_instance(user, {"subscription_status": "past_due"})
        logger.warning(f"Invoice payment failed for user {user.id}")
        return True
