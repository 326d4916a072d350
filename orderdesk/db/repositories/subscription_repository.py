# orderdesk/db/repositories/subscription_repository.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import SubscriptionStatus, TERMINAL_STATUSES
from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.subscription import Subscription
from orderdesk.db.repositories.base import TenantScopedRepository


class SubscriptionRepository(TenantScopedRepository[Subscription]):
    """Repository for Subscription operations"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(Subscription, session, context)

    async def get_current(self) -> Optional[Subscription]:
        """Latest non-terminal subscription of the tenant"""
        return await self.first(
            Subscription.status.not_in([s.value for s in TERMINAL_STATUSES]),
            order_by=Subscription.created_at.desc(),
        )

    async def list_lapsed(self, now: datetime) -> List[Subscription]:
        """Active subscriptions past their end date without auto-renewal"""
        return await self.get_multi(
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.end_date.is_not(None),
            Subscription.end_date < now,
            Subscription.auto_renew.is_(False),
        )
