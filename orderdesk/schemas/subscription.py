# orderdesk/schemas/subscription.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from uuid import UUID

from orderdesk.core.constants import PlanCode, SubscriptionStatus


class SubscriptionPlan(BaseModel):
    """Catalog entry. Limits <= 0 mean unlimited."""
    model_config = ConfigDict(frozen=True)

    code: PlanCode
    display_name: str
    monthly_price: float
    annual_price: float
    duration_days: Optional[int] = None
    max_branches: int = 0
    max_users: int = 0
    max_orders_per_month: int = 0
    includes_inventory: bool = False
    includes_advanced_reporting: bool = False
    includes_whatsapp_billing: bool = False


class SubscriptionCreate(BaseModel):
    plan_code: PlanCode
    auto_renew: bool = False


class SubscriptionActivate(BaseModel):
    provider: str
    external_id: str


class PlanChangeRequest(BaseModel):
    plan_code: PlanCode


class SubscriptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    plan_code: PlanCode
    status: SubscriptionStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    auto_renew: bool
    billing_provider: str
    external_subscription_id: Optional[str] = None
    created_at: datetime


class BillingPayload(BaseModel):
    """Data needed to compose one invoice notification. Never persisted."""
    model_config = ConfigDict(frozen=True)

    tenant_id: UUID
    subscription_id: UUID
    channel: str
    recipient: str
    plan_name: str
    amount: float
    currency: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    invoice_url: Optional[str] = None


class BillingHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subscription_id: UUID
    plan_code: str
    amount: float
    currency: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    channel: str
    recipient: str
    paid: bool
    invoice_url: Optional[str] = None
    created_at: datetime
