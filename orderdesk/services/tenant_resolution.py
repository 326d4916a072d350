# orderdesk/services/tenant_resolution.py
from typing import Dict, Mapping, Optional, Type
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import settings
from orderdesk.core.exceptions import BranchNotFoundError, TenantNotFoundError, UserNotFoundError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext, TenantContextProvider
from orderdesk.db.models.tenant import Tenant
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.db.repositories.user_repository import UserRepository


class HeaderTenantContextProvider:
    """
    Resolves the tenant from the tenant-code header and, when present, the
    branch from the branch-code header and the acting user from the user-id
    header. Falls back to DEFAULT_TENANT_ID when no tenant header is sent.
    Returns None when nothing identifies a tenant.
    """

    def __init__(
        self,
        session: AsyncSession,
        tenant_header: Optional[str] = None,
        branch_header: Optional[str] = None,
        user_header: Optional[str] = None,
        default_tenant_id: Optional[UUID] = None,
    ):
        self.session = session
        self.tenant_header = tenant_header or settings.TENANT_HEADER_NAME
        self.branch_header = branch_header or settings.BRANCH_HEADER_NAME
        self.user_header = user_header or settings.USER_HEADER_NAME
        self.default_tenant_id = default_tenant_id or settings.DEFAULT_TENANT_ID
        self.tenants = TenantRepository(session)

    async def _find_tenant(self, headers: Mapping[str, str]) -> Optional[Tenant]:
        code = headers.get(self.tenant_header)
        if code:
            tenant = await self.tenants.get_by_code(code.strip().lower())
            if tenant is None:
                raise TenantNotFoundError(code)
            return tenant
        if self.default_tenant_id is not None:
            tenant = await self.tenants.get_by_id(self.default_tenant_id)
            if tenant is None:
                raise TenantNotFoundError(self.default_tenant_id)
            return tenant
        return None

    async def _find_user_id(self, context: TenantContext, raw: str) -> UUID:
        """The acting user must be an active member of the resolved tenant"""
        try:
            user_id = UUID(raw.strip())
        except ValueError:
            raise UserNotFoundError(raw)
        user = await UserRepository(self.session, context).get(user_id)
        if user is None or not user.is_active:
            raise UserNotFoundError(user_id)
        return user.id

    async def resolve(self, headers: Mapping[str, str]) -> Optional[TenantContext]:
        tenant = await self._find_tenant(headers)
        if tenant is None:
            return None
        if not tenant.is_active:
            logger.warning(f"Rejected request for inactive tenant {tenant.code}", extra={"tenant_id": tenant.id})
            raise TenantNotFoundError(tenant.code)

        context = TenantContext(tenant_id=tenant.id, tenant_code=tenant.code)
        user_header = headers.get(self.user_header)
        if user_header:
            context = context.for_user(await self._find_user_id(context, user_header))

        branch_code = headers.get(self.branch_header)
        if branch_code:
            branch = await BranchRepository(self.session, context).get_by_code(branch_code.strip())
            if branch is None or not branch.is_active:
                raise BranchNotFoundError(branch_code)
            context = context.for_branch(branch.id, branch.code)
        return context


TENANT_CONTEXT_PROVIDERS: Dict[str, Type[HeaderTenantContextProvider]] = {
    "header": HeaderTenantContextProvider,
}


def get_tenant_context_provider(session: AsyncSession, strategy: Optional[str] = None) -> TenantContextProvider:
    """Provider for the configured TENANT_RESOLUTION_STRATEGY"""
    strategy = strategy or settings.TENANT_RESOLUTION_STRATEGY
    try:
        provider_class = TENANT_CONTEXT_PROVIDERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown tenant resolution strategy: {strategy}")
    return provider_class(session)
