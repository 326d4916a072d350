# orderdesk/db/repositories/branch_repository.py
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.branch import Branch
from orderdesk.db.repositories.base import TenantScopedRepository


class BranchRepository(TenantScopedRepository[Branch]):
    """Repository for Branch operations"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(Branch, session, context)

    async def get_by_code(self, code: str) -> Optional[Branch]:
        return await self.first(Branch.code == code)

    async def list_active(self) -> List[Branch]:
        return await self.get_multi(
            Branch.is_active.is_(True), limit=1000, order_by=Branch.created_at
        )

    async def count_active(self) -> int:
        """Count active (not deactivated) branches"""
        return await self.count(Branch.is_active.is_(True))

    async def deactivate(self, branch_id) -> Optional[Branch]:
        return await self.update(branch_id, {"is_active": False})
