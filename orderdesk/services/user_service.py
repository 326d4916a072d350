# orderdesk/services/user_service.py
from typing import List
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import UsageResource
from orderdesk.core.exceptions import BranchNotFoundError, UserEmailTakenError, UserNotFoundError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.user import User
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.db.repositories.user_repository import UserRepository
from orderdesk.schemas.user import UserCreate
from orderdesk.services.quota_guard import QuotaGuard


class UserService:
    """User management for one tenant"""

    def __init__(self, session: AsyncSession, context: TenantContext, quota_guard: QuotaGuard):
        self.session = session
        self.context = context.tenant_wide()
        self.users = UserRepository(session, self.context)
        self.branches = BranchRepository(session, self.context)
        self.quota_guard = quota_guard

    async def list_active(self) -> List[User]:
        return await self.users.get_multi(User.is_active.is_(True), limit=1000, order_by=User.created_at)

    async def create(self, data: UserCreate) -> User:
        # Home branch must belong to the same tenant
        if data.branch_id is not None and await self.branches.get(data.branch_id) is None:
            raise BranchNotFoundError(data.branch_id)

        email = data.email.lower()
        if await self.users.get_by_email(email) is not None:
            raise UserEmailTakenError(email)

        await self.quota_guard.ensure_can_create(self.context.tenant_id, UsageResource.USERS)

        try:
            user = await self.users.create({
                "email": email,
                "display_name": data.display_name,
                "role": data.role.value,
                "branch_id": data.branch_id,
            })
        except IntegrityError:
            await self.session.rollback()
            raise UserEmailTakenError(email)
        logger.info(f"Created user {user.email} ({user.role})", extra=self.context.log_extra)
        return user

    async def deactivate(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return await self.users.update(user.id, {"is_active": False})
