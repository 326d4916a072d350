# orderdesk/db/repositories/order_repository.py
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.order import Order
from orderdesk.db.repositories.base import TenantScopedRepository


class OrderRepository(TenantScopedRepository[Order]):
    """Repository for Order operations"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(Order, session, context)

    async def count_created_between(self, start: datetime, end: datetime) -> int:
        """Count orders created in [start, end)"""
        return await self.count(Order.created_at >= start, Order.created_at < end)
