# orderdesk/db/repositories/usage_repository.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.usage import TenantUsageSnapshot
from orderdesk.db.repositories.base import TenantScopedRepository

APPEND_ATTEMPTS = 3


class UsageSnapshotRepository(TenantScopedRepository[TenantUsageSnapshot]):
    """Append-only store of usage snapshots, ordered by a per-tenant sequence"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(TenantUsageSnapshot, session, context)

    async def _next_sequence(self) -> int:
        result = await self.session.execute(
            self._scoped(select(func.max(TenantUsageSnapshot.sequence)))
        )
        return (result.scalar() or 0) + 1

    async def append(self, active_branches: int, active_users: int, orders_current_month: int) -> TenantUsageSnapshot:
        """Store a snapshot; a concurrent append taking the same sequence is retried"""
        for attempt in range(1, APPEND_ATTEMPTS + 1):
            sequence = await self._next_sequence()
            try:
                return await self.create({
                    "sequence": sequence,
                    "active_branches": active_branches,
                    "active_users": active_users,
                    "orders_current_month": orders_current_month,
                })
            except IntegrityError:
                await self.session.rollback()
                if attempt == APPEND_ATTEMPTS:
                    raise

    async def latest(self) -> Optional[TenantUsageSnapshot]:
        return await self.first(order_by=TenantUsageSnapshot.sequence.desc())

    async def history(self, since: Optional[datetime] = None, limit: int = 100) -> List[TenantUsageSnapshot]:
        """Snapshots newest first, optionally only those captured at or after `since`"""
        criteria = []
        if since is not None:
            criteria.append(TenantUsageSnapshot.captured_at >= since)
        return await self.get_multi(
            *criteria, limit=limit, order_by=TenantUsageSnapshot.sequence.desc()
        )

    async def update(self, id, obj_in: dict):
        raise TypeError("Usage snapshots are immutable")

    async def delete(self, id) -> bool:
        raise TypeError("Usage snapshots are immutable")
