# orderdesk/api/dependencies.py
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import TenantContextMissingError
from orderdesk.core.tenant import TenantContext
from orderdesk.db.database import get_db
from orderdesk.services.billing_dispatcher import BillingDispatcher
from orderdesk.services.branch_service import BranchService
from orderdesk.services.plan_catalog import PlanCatalog, get_plan_catalog
from orderdesk.services.quota_guard import QuotaGuard
from orderdesk.services.subscription_service import SubscriptionService
from orderdesk.services.tenant_resolution import get_tenant_context_provider
from orderdesk.services.usage_tracker import UsageTracker
from orderdesk.services.user_service import UserService


async def resolve_tenant_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> TenantContext:
    """Tenant (and branch) of the current request"""
    context = await get_tenant_context_provider(db).resolve(request.headers)
    if context is None:
        raise TenantContextMissingError()
    request.state.tenant_context = context
    return context


def get_billing_dispatcher() -> BillingDispatcher:
    return BillingDispatcher()


def get_usage_tracker(
    db: AsyncSession = Depends(get_db),
    plan_catalog: PlanCatalog = Depends(get_plan_catalog),
) -> UsageTracker:
    return UsageTracker(db, plan_catalog)


def get_quota_guard(
    db: AsyncSession = Depends(get_db),
    plan_catalog: PlanCatalog = Depends(get_plan_catalog),
    usage_tracker: UsageTracker = Depends(get_usage_tracker),
) -> QuotaGuard:
    return QuotaGuard(db, plan_catalog, usage_tracker)


def get_subscription_service(
    db: AsyncSession = Depends(get_db),
    context: TenantContext = Depends(resolve_tenant_context),
    plan_catalog: PlanCatalog = Depends(get_plan_catalog),
    usage_tracker: UsageTracker = Depends(get_usage_tracker),
    billing_dispatcher: BillingDispatcher = Depends(get_billing_dispatcher),
) -> SubscriptionService:
    return SubscriptionService(db, context, plan_catalog, usage_tracker, billing_dispatcher)


def get_branch_service(
    db: AsyncSession = Depends(get_db),
    context: TenantContext = Depends(resolve_tenant_context),
    quota_guard: QuotaGuard = Depends(get_quota_guard),
) -> BranchService:
    return BranchService(db, context, quota_guard)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    context: TenantContext = Depends(resolve_tenant_context),
    quota_guard: QuotaGuard = Depends(get_quota_guard),
) -> UserService:
    return UserService(db, context, quota_guard)
