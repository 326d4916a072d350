# orderdesk/api/v1/subscriptions.py
from fastapi import APIRouter, Depends, status
from typing import List, Optional
from uuid import UUID

from orderdesk.api.dependencies import get_subscription_service
from orderdesk.schemas.subscription import (
    BillingHistoryOut,
    PlanChangeRequest,
    SubscriptionActivate,
    SubscriptionCreate,
    SubscriptionOut,
    SubscriptionPlan,
)
from orderdesk.services.plan_catalog import PlanCatalog, get_plan_catalog
from orderdesk.services.subscription_service import SubscriptionService

router = APIRouter()


@router.get("/plans", response_model=List[SubscriptionPlan])
async def list_plans(plan_catalog: PlanCatalog = Depends(get_plan_catalog)):
    """Available subscription plans"""
    return plan_catalog.get_plans()


@router.get("/current", response_model=Optional[SubscriptionOut])
async def get_current_subscription(
    service: SubscriptionService = Depends(get_subscription_service),
):
    return await service.get_current()


@router.post("", response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    data: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Start a pending subscription"""
    return await service.create(data.plan_code, auto_renew=data.auto_renew)


@router.post("/{subscription_id}/activate", response_model=SubscriptionOut)
async def activate_subscription(
    subscription_id: UUID,
    data: SubscriptionActivate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Billing provider confirmation"""
    return await service.activate(subscription_id, data.provider, data.external_id)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionOut)
async def cancel_subscription(
    subscription_id: UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    return await service.cancel(subscription_id)


@router.post("/change-plan", response_model=SubscriptionOut)
async def change_plan(
    data: PlanChangeRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    return await service.request_plan_change(data.plan_code)


@router.post("/invoice", response_model=Optional[BillingHistoryOut])
async def send_invoice(
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Dispatch the current invoice; null when the tenant is not billable"""
    return await service.invoice_tenant()
