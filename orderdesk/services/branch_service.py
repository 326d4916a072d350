# orderdesk/services/branch_service.py
from typing import List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import UsageResource
from orderdesk.core.exceptions import BranchCodeTakenError, BranchNotFoundError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.branch import Branch
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.schemas.branch import BranchCreate
from orderdesk.services.quota_guard import QuotaGuard


def branch_code_from_name(name: str) -> str:
    """Default branch code: the name without spaces, uppercased, at most 10 chars"""
    return name.replace(" ", "").upper()[:10]


class BranchService:
    """Branch management for one tenant"""

    def __init__(self, session: AsyncSession, context: TenantContext, quota_guard: QuotaGuard):
        self.session = session
        self.context = context.tenant_wide()
        self.branches = BranchRepository(session, self.context)
        self.quota_guard = quota_guard

    async def list_active(self) -> List[Branch]:
        return await self.branches.list_active()

    async def create(self, data: BranchCreate) -> Branch:
        """Create a branch if the tenant's plan allows another one"""
        code = data.code or branch_code_from_name(data.name)
        if await self.branches.get_by_code(code) is not None:
            raise BranchCodeTakenError(code)

        await self.quota_guard.ensure_can_create(self.context.tenant_id, UsageResource.BRANCHES)

        try:
            branch = await self.branches.create({
                "name": data.name,
                "code": code,
                "address": data.address,
                "city": data.city,
            })
        except IntegrityError:
            # uq_branches_tenant_code caught a concurrent create
            await self.session.rollback()
            raise BranchCodeTakenError(code)
        logger.info(f"Created branch {branch.code}", extra={**self.context.log_extra, "branch_id": branch.id})
        return branch

    async def deactivate(self, branch_id: UUID) -> Optional[Branch]:
        """Deactivated branches stop counting against the quota"""
        branch = await self.branches.get(branch_id)
        if branch is None:
            raise BranchNotFoundError(branch_id)
        branch = await self.branches.deactivate(branch.id)
        logger.info(f"Deactivated branch {branch.code}", extra={**self.context.log_extra, "branch_id": branch.id})
        return branch
