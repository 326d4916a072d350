"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""

import pytest
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from orderdesk.main import app
from orderdesk.api.dependencies import get_billing_dispatcher
from orderdesk.core.config import DEFAULT_PLANS
from orderdesk.core.constants import PlanCode
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import Base
from orderdesk.db.database import get_db
from orderdesk.db.models.tenant import Tenant
from orderdesk.db import models  # noqa: F401
from orderdesk.services.billing_dispatcher import BillingDispatcher
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.subscription_service import SubscriptionService
from orderdesk.services.tenant_service import TenantProvisioningService

# In-memory database shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Fresh database for each test"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def plan_catalog() -> PlanCatalog:
    return PlanCatalog(DEFAULT_PLANS)


@pytest.fixture
def email_channel() -> AsyncMock:
    channel = AsyncMock()
    channel.send.return_value = True
    return channel


@pytest.fixture
def whatsapp_channel() -> AsyncMock:
    channel = AsyncMock()
    channel.send.return_value = True
    return channel


@pytest.fixture
def billing_dispatcher(email_channel, whatsapp_channel) -> BillingDispatcher:
    return BillingDispatcher(email_channel=email_channel, whatsapp_channel=whatsapp_channel)


@pytest.fixture
def make_tenant(db_session: AsyncSession, plan_catalog: PlanCatalog):
    """
    Provision a tenant (main branch plus admin user) and optionally a
    subscription on `plan_code`, activated unless `activate` is False.
    """

    async def _make(
        code: str,
        plan_code: Optional[PlanCode] = PlanCode.BASIC,
        activate: bool = True,
        admin_email: Optional[str] = None,
        admin_phone: Optional[str] = None,
        auto_renew: bool = False,
    ) -> Tenant:
        tenant = await TenantProvisioningService(db_session, plan_catalog).create_tenant(
            name=f"{code.title()} Restaurant",
            code=code,
            admin_email=admin_email if admin_email is not None else f"admin@{code}.my",
            admin_phone=admin_phone,
        )
        if plan_code is not None:
            service = SubscriptionService(db_session, TenantContext.system(tenant.id), plan_catalog)
            subscription = await service.create(plan_code, auto_renew=auto_renew)
            if activate:
                await service.activate(subscription.id, "manual", f"ext-{code}")
        return tenant

    return _make


@pytest.fixture
async def tenant_a(make_tenant) -> Tenant:
    return await make_tenant("alpha", PlanCode.STANDARD)


@pytest.fixture
async def tenant_b(make_tenant) -> Tenant:
    return await make_tenant("bravo", PlanCode.STANDARD)


@pytest.fixture
async def client(db_session: AsyncSession, billing_dispatcher: BillingDispatcher) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_billing_dispatcher] = lambda: billing_dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Request headers selecting a tenant and optionally one of its branches"""

    def _headers(tenant: Tenant, branch_code: Optional[str] = None) -> dict:
        headers = {"X-Tenant-Code": tenant.code}
        if branch_code:
            headers["X-Branch-Code"] = branch_code
        return headers

    return _headers
