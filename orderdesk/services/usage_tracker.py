# orderdesk/services/usage_tracker.py
"""
Usage snapshots per tenant.

A snapshot counts active branches, active users and orders created in the
current calendar month (UTC). Snapshots are appended, never rewritten; the
newest one is the tenant's "current usage".
"""
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import UsageThresholds, settings
from orderdesk.core.constants import UsageResource
from orderdesk.core.exceptions import NoActiveSubscriptionError, TenantNotFoundError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import utcnow
from orderdesk.db.models.tenant import Tenant
from orderdesk.db.models.usage import TenantUsageSnapshot
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.db.repositories.order_repository import OrderRepository
from orderdesk.db.repositories.subscription_repository import SubscriptionRepository
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.db.repositories.usage_repository import UsageSnapshotRepository
from orderdesk.db.repositories.user_repository import UserRepository
from orderdesk.schemas.subscription import SubscriptionPlan
from orderdesk.services.plan_catalog import PlanCatalog


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """First instant of the month containing `now` and of the next month"""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def plan_limit(plan: SubscriptionPlan, resource: UsageResource) -> int:
    if resource == UsageResource.BRANCHES:
        return plan.max_branches
    if resource == UsageResource.USERS:
        return plan.max_users
    return plan.max_orders_per_month


def snapshot_count(snapshot: TenantUsageSnapshot, resource: UsageResource) -> int:
    if resource == UsageResource.BRANCHES:
        return snapshot.active_branches
    if resource == UsageResource.USERS:
        return snapshot.active_users
    return snapshot.orders_current_month


class UsageTracker:
    """Captures and evaluates tenant usage snapshots"""

    def __init__(
        self,
        session: AsyncSession,
        plan_catalog: PlanCatalog,
        thresholds: Optional[UsageThresholds] = None,
    ):
        self.session = session
        self.plan_catalog = plan_catalog
        self.thresholds = thresholds or settings.USAGE_THRESHOLDS

    async def _require_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await TenantRepository(self.session).get_by_id(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def capture(self, tenant_id: UUID) -> TenantUsageSnapshot:
        """Count current usage and append it as a new snapshot"""
        tenant = await self._require_tenant(tenant_id)
        context = TenantContext.system(tenant.id, tenant.code)

        month_start, month_end = month_bounds(utcnow())
        branches = await BranchRepository(self.session, context).count_active()
        users = await UserRepository(self.session, context).count_active()
        orders = await OrderRepository(self.session, context).count_created_between(
            month_start, month_end
        )

        snapshot = await UsageSnapshotRepository(self.session, context).append(
            active_branches=branches,
            active_users=users,
            orders_current_month=orders,
        )
        logger.info(
            f"Captured usage: {branches} branches, {users} users, {orders} orders this month",
            extra=context.log_extra,
        )
        return snapshot

    async def latest(self, tenant_id: UUID) -> Optional[TenantUsageSnapshot]:
        await self._require_tenant(tenant_id)
        return await UsageSnapshotRepository(self.session, TenantContext.system(tenant_id)).latest()

    async def history(
        self,
        tenant_id: UUID,
        since: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[TenantUsageSnapshot]:
        await self._require_tenant(tenant_id)
        repo = UsageSnapshotRepository(self.session, TenantContext.system(tenant_id))
        return await repo.history(since=since, limit=limit)

    def threshold_for(self, resource: UsageResource) -> float:
        return getattr(self.thresholds, resource.value)

    def resources_near_limit(self, snapshot: TenantUsageSnapshot, plan: SubscriptionPlan) -> List[UsageResource]:
        """Dimensions whose usage ratio meets or exceeds its threshold"""
        near = []
        for resource in UsageResource:
            limit = plan_limit(plan, resource)
            if limit <= 0:
                continue
            if snapshot_count(snapshot, resource) / limit >= self.threshold_for(resource):
                near.append(resource)
        return near

    async def near_limits(self, tenant_id: UUID, snapshot: TenantUsageSnapshot) -> List[UsageResource]:
        """Resources of `snapshot` near the current plan's limits; empty without a subscription"""
        subscription = await SubscriptionRepository(
            self.session, TenantContext.system(tenant_id)
        ).get_current()
        if subscription is None:
            return []
        plan = self.plan_catalog.get_plan(subscription.plan_code)
        near = self.resources_near_limit(snapshot, plan)
        if near:
            logger.warning(
                f"Usage nearing {plan.display_name} limits: {', '.join(r.value for r in near)}",
                extra={"tenant_id": tenant_id, "subscription_id": subscription.id},
            )
        return near

    async def is_nearing_limit(self, tenant_id: UUID) -> bool:
        await self._require_tenant(tenant_id)
        subscription = await SubscriptionRepository(
            self.session, TenantContext.system(tenant_id)
        ).get_current()
        if subscription is None:
            raise NoActiveSubscriptionError(tenant_id)

        snapshot = await self.capture(tenant_id)
        return bool(await self.near_limits(tenant_id, snapshot))
