# orderdesk/services/tenant_service.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import PlanCode, UserRole
from orderdesk.core.exceptions import TenantCodeTakenError
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.models.tenant import Tenant
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.db.repositories.user_repository import UserRepository
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.subscription_service import SubscriptionService

MAIN_BRANCH_NAME = "Main Branch"
MAIN_BRANCH_CODE = "main"


class TenantProvisioningService:
    """
    Onboards a new tenant: the tenant row, its main branch, the admin user
    and optionally a pending subscription.

    The main branch and admin are created before any subscription exists, so
    they bypass the quota guard. Every plan allows at least one of each.
    """

    def __init__(self, session: AsyncSession, plan_catalog: PlanCatalog):
        self.session = session
        self.plan_catalog = plan_catalog
        self.tenants = TenantRepository(session)

    async def create_tenant(
        self,
        name: str,
        code: str,
        admin_email: Optional[str] = None,
        admin_phone: Optional[str] = None,
        country_code: str = "MY",
        default_currency: str = "MYR",
        plan_code: Optional[PlanCode] = None,
    ) -> Tenant:
        code = code.lower()
        if await self.tenants.get_by_code(code) is not None:
            raise TenantCodeTakenError(code)
        if plan_code is not None:
            self.plan_catalog.get_plan(plan_code)

        tenant = await self.tenants.create({
            "name": name,
            "code": code,
            "country_code": country_code,
            "default_currency": default_currency,
            "admin_email": admin_email,
            "admin_phone": admin_phone,
        })
        context = TenantContext.system(tenant.id, tenant.code)

        await BranchRepository(self.session, context).create({
            "name": MAIN_BRANCH_NAME,
            "code": MAIN_BRANCH_CODE,
        })
        if admin_email:
            await UserRepository(self.session, context).create({
                "email": admin_email.lower(),
                "display_name": f"{name} Admin",
                "role": UserRole.ADMIN.value,
            })
        if plan_code is not None:
            await SubscriptionService(self.session, context, self.plan_catalog).create(plan_code)

        logger.info(f"Provisioned tenant {tenant.code}", extra=context.log_extra)
        return tenant
