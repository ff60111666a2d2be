"""
Subscription, payment intent and Stripe webhook endpoints.
"""

from fastapi import APIRouter, Depends, Header, Request, status
from typing import List, Optional

from inmobi.models.user import User
from inmobi.services.payment import PaymentService
from inmobi.schemas.payment import (
    PlanResponse,
    SubscriptionResponse,
    SubscriptionCreate,
    SubscriptionCreateResponse,
    SubscriptionUpdate,
    PaymentIntentRequest,
    PaymentIntentResponse,
    WebhookResponse,
)
from inmobi.schemas.error import COMMON_ERROR_RESPONSES, PREMIUM_ERROR_RESPONSES
from inmobi.utils.dependencies import get_current_active_user, get_payment_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])

PAYMENT_ERROR_RESPONSES = {**PREMIUM_ERROR_RESPONSES, 503: COMMON_ERROR_RESPONSES[503]}


@router.get("/subscription/plans", response_model=List[PlanResponse], summary="Subscription plans")
async def list_plans(payment_service: PaymentService = Depends(get_payment_service)) -> List[PlanResponse]:
    return [PlanResponse.model_validate(plan) for plan in payment_service.get_plans()]


@router.get("/subscription", response_model=SubscriptionResponse, summary="Current subscription")
async def get_subscription(
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(payment_service.get_subscription(current_user))


@router.post(
    "/subscription",
    response_model=SubscriptionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe",
    description="The tier is granted once Stripe reports the subscription active or trialing",
    responses=PAYMENT_ERROR_RESPONSES
)
async def create_subscription(
    subscription_data: SubscriptionCreate,
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> SubscriptionCreateResponse:
    result = await payment_service.create_subscription(current_user, subscription_data.price_id)
    return SubscriptionCreateResponse.model_validate(result)


@router.put("/subscription", response_model=SubscriptionResponse, summary="Change plan", responses=PAYMENT_ERROR_RESPONSES)
async def update_subscription(
    subscription_data: SubscriptionUpdate,
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> SubscriptionResponse:
    result = await payment_service.update_subscription(current_user, subscription_data.price_id)
    return SubscriptionResponse.model_validate(result)


@router.delete("/subscription", response_model=SubscriptionResponse, summary="Cancel subscription", responses=PAYMENT_ERROR_RESPONSES)
async def cancel_subscription(
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(await payment_service.cancel_subscription(current_user))


@router.post(
    "/payment-intent",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create payment intent",
    responses=PAYMENT_ERROR_RESPONSES
)
async def create_payment_intent(
    intent_data: PaymentIntentRequest,
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> PaymentIntentResponse:
    result = await payment_service.create_payment_intent(current_user, intent_data.amount, intent_data.description)
    return PaymentIntentResponse.model_validate(result)


@router.post(
    "/webhook/stripe",
    response_model=WebhookResponse,
    summary="Stripe webhook",
    description="Signed with the Stripe-Signature header; the raw body is verified before parsing",
    responses={400: COMMON_ERROR_RESPONSES[400], 503: COMMON_ERROR_RESPONSES[503]}
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    payment_service: PaymentService = Depends(get_payment_service)
) -> WebhookResponse:
    payload = await request.body()
    event_type, handled = await payment_service.handle_webhook(payload, stripe_signature)
    logger.info(f"Stripe webhook {event_type} handled={handled}")
    return WebhookResponse(event_type=event_type, handled=handled)
