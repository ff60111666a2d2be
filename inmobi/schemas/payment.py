"""
Subscription and payment schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from inmobi.models.user import SubscriptionTier


class PlanResponse(BaseModel):
    tier: SubscriptionTier
    name: str
    price: float = Field(..., description="USD per month")
    price_id: Optional[str] = None
    features: List[str]


class SubscriptionResponse(BaseModel):
    tier: SubscriptionTier
    status: Optional[str] = None
    expires_at: Optional[datetime] = None
    subscription_id: Optional[str] = None
    features: List[str]


class PaymentIntentRequest(BaseModel):
    amount: float = Field(..., gt=0, le=1_000_000, description="Amount in USD", examples=[19.99])
    description: Optional[str] = Field(None, max_length=255)


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    amount: int = Field(..., description="Amount in cents")
    currency: str = "usd"


class SubscriptionCreate(BaseModel):
    price_id: str = Field(..., min_length=1, examples=["price_premium_monthly"])


class SubscriptionUpdate(BaseModel):
    price_id: str = Field(..., min_length=1)


class WebhookResponse(BaseModel):
    received: bool = True
    event_type: str
    handled: bool


class SubscriptionCreateResponse(BaseModel):
    subscription_id: str
    status: Optional[str] = None
    tier: SubscriptionTier
    client_secret: Optional[str] = Field(None, description="Present when the first invoice needs confirmation")
