import asyncio
from orderdesk.core.constants import PlanCode
from orderdesk.core.tenant import TenantContext
from orderdesk.db.database import async_session_local, init_db
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.services.plan_catalog import get_plan_catalog
from orderdesk.services.subscription_service import SubscriptionService
from orderdesk.services.tenant_service import TenantProvisioningService

DEMO_TENANT_CODE = "demo-bistro"


async def seed_data():
    await init_db()
    async with async_session_local() as session:
        tenant_repo = TenantRepository(session)
        catalog = get_plan_catalog()

        # Create or get demo tenant
        existing_tenant = await tenant_repo.get_by_code(DEMO_TENANT_CODE)
        if existing_tenant:
            tenant = existing_tenant
            print(f"Tenant already exists: {tenant.name}")
        else:
            tenant = await TenantProvisioningService(session, catalog).create_tenant(
                name="Demo Bistro",
                code=DEMO_TENANT_CODE,
                admin_email="owner@demobistro.my",
                admin_phone="+60123456789",
                plan_code=PlanCode.STANDARD,
            )
            print(f"Created tenant: {tenant.name}")

        service = SubscriptionService(session, TenantContext.system(tenant.id, tenant.code), catalog)
        subscription = await service.get_current()
        if subscription and subscription.status == "pending":
            subscription = await service.activate(subscription.id, "manual", "seed")
            print(f"Activated {subscription.plan_code} subscription")
        elif subscription:
            print(f"Subscription already {subscription.status}")

        print("\nRequest headers:")
        print(f"X-Tenant-Code: {tenant.code}")
        print("X-Branch-Code: main")

if __name__ == "__main__":
    asyncio.run(seed_data())
