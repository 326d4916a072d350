# orderdesk/services/quota_guard.py
"""
Plan limit check run inline by every branch- and user-creation flow.

The check and the caller's insert are not atomic: two concurrent creators for
the same tenant can both pass and both insert, so a tenant may end up to N-1
resources over its limit with N concurrent creators. A hard cap needs a
per-tenant advisory lock or a transactional counter in the database.
"""
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import UsageResource
from orderdesk.core.exceptions import NoActiveSubscriptionError, QuotaExceededError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.usage import TenantUsageSnapshot
from orderdesk.db.repositories.subscription_repository import SubscriptionRepository
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.usage_tracker import UsageTracker, plan_limit, snapshot_count


class QuotaGuard:
    """Accepts or rejects a resource creation against the tenant's plan"""

    def __init__(self, session: AsyncSession, plan_catalog: PlanCatalog, usage_tracker: UsageTracker):
        self.session = session
        self.plan_catalog = plan_catalog
        self.usage_tracker = usage_tracker

    async def ensure_can_create(self, tenant_id: UUID, resource: UsageResource) -> TenantUsageSnapshot:
        """
        Raise QuotaExceededError if creating one more `resource` would go over
        the plan limit. Returns the fresh snapshot the decision was based on.
        """
        subscription = await SubscriptionRepository(
            self.session, TenantContext.system(tenant_id)
        ).get_current()
        if subscription is None:
            raise NoActiveSubscriptionError(tenant_id)

        plan = self.plan_catalog.get_plan(subscription.plan_code)
        snapshot = await self.usage_tracker.capture(tenant_id)

        limit = plan_limit(plan, resource)
        current = snapshot_count(snapshot, resource)
        if limit > 0 and current >= limit:
            logger.warning(
                f"Quota exceeded for {resource.value}: {current}/{limit} on plan {plan.display_name}",
                extra={"tenant_id": tenant_id, "subscription_id": subscription.id},
            )
            raise QuotaExceededError(resource.value, limit, plan.display_name)

        return snapshot
