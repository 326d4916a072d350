# orderdesk/db/repositories/user_repository.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.user import User
from orderdesk.db.repositories.base import TenantScopedRepository


class UserRepository(TenantScopedRepository[User]):
    """Repository for User operations"""

    def __init__(self, session: AsyncSession, context: TenantContext):
        super().__init__(User, session, context)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        return await self.first(User.email == email)

    async def count_active(self) -> int:
        """Count active users"""
        return await self.count(User.is_active.is_(True))
