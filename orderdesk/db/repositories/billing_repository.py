# orderdesk/db/repositories/billing_repository.py
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.billing import BillingHistory
from orderdesk.db.repositories.base import TenantScopedRepository


class BillingHistoryRepository(TenantScopedRepository[BillingHistory]):
    """Repository for dispatched invoices"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(BillingHistory, session, context)

    async def list_recent(self, limit: int = 12) -> List[BillingHistory]:
        return await self.get_multi(limit=limit, order_by=BillingHistory.created_at.desc())
