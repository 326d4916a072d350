# orderdesk/db/repositories/tenant_repository.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.db.models.tenant import Tenant
from orderdesk.db.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for Tenant operations"""

    def __init__(self, session: AsyncSession):
        super().__init__(Tenant, session)

    async def get_by_id(self, tenant_id: UUID) -> Optional[Tenant]:
        """Get tenant by ID"""
        return await self.get(tenant_id)

    async def get_by_code(self, code: str) -> Optional[Tenant]:
        """Get tenant by its human-readable code"""
        result = await self.session.execute(
            select(Tenant).where(Tenant.code == code)
        )
        return result.scalar_one_or_none()

    async def list_active_ids(self) -> List[UUID]:
        """IDs of all active tenants, oldest first"""
        result = await self.session.execute(
            select(Tenant.id)
            .where(Tenant.is_active.is_(True))
            .order_by(Tenant.created_at)
        )
        return list(result.scalars().all())

    async def deactivate(self, tenant_id: UUID) -> Optional[Tenant]:
        return await self.update(tenant_id, {"is_active": False})
