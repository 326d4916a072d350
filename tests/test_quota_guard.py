"""
Tests for plan limit enforcement on branch and user creation
"""
import pytest
from unittest.mock import AsyncMock
from uuid import uuid4
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.constants import PlanCode, UsageResource, UserRole
from orderdesk.core.exceptions import (
    BranchCodeTakenError,
    BranchNotFoundError,
    NoActiveSubscriptionError,
    QuotaExceededError,
    UserEmailTakenError,
)
from orderdesk.core.tenant import TenantContext
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.schemas.branch import BranchCreate
from orderdesk.schemas.user import UserCreate
from orderdesk.services.branch_service import BranchService, branch_code_from_name
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.quota_guard import QuotaGuard
from orderdesk.services.subscription_service import SubscriptionService
from orderdesk.services.usage_tracker import UsageTracker
from orderdesk.services.user_service import UserService


@pytest.fixture
def quota_guard(db_session: AsyncSession, plan_catalog: PlanCatalog) -> QuotaGuard:
    return QuotaGuard(db_session, plan_catalog, UsageTracker(db_session, plan_catalog))


@pytest.mark.asyncio
class TestQuotaGuard:

    async def test_rejects_at_limit(self, quota_guard: QuotaGuard, make_tenant):
        tenant = await make_tenant("tiny", PlanCode.BASIC)

        with pytest.raises(QuotaExceededError) as exc_info:
            await quota_guard.ensure_can_create(tenant.id, UsageResource.BRANCHES)

        error = exc_info.value
        assert error.resource == "branches"
        assert error.limit == 1
        assert error.plan_name == "Basic"
        assert "Maximum allowed: 1" in error.message

    async def test_allows_below_limit(self, quota_guard: QuotaGuard, make_tenant):
        tenant = await make_tenant("tiny", PlanCode.BASIC)

        snapshot = await quota_guard.ensure_can_create(tenant.id, UsageResource.USERS)
        assert snapshot.active_users == 1

    async def test_unlimited_plan(self, db_session: AsyncSession, quota_guard: QuotaGuard, make_tenant):
        tenant = await make_tenant("huge", PlanCode.ENTERPRISE)
        branches = BranchRepository(db_session, TenantContext.system(tenant.id))
        for i in range(12):
            await branches.create({"name": f"Outlet {i}", "code": f"OUT{i}"})

        await quota_guard.ensure_can_create(tenant.id, UsageResource.BRANCHES)

    async def test_requires_subscription(self, quota_guard: QuotaGuard, make_tenant):
        tenant = await make_tenant("nosub", plan_code=None)

        with pytest.raises(NoActiveSubscriptionError):
            await quota_guard.ensure_can_create(tenant.id, UsageResource.BRANCHES)

    async def test_pending_subscription_limits_apply(self, quota_guard: QuotaGuard, make_tenant):
        tenant = await make_tenant("waiting", PlanCode.BASIC, activate=False)

        await quota_guard.ensure_can_create(tenant.id, UsageResource.USERS)
        with pytest.raises(QuotaExceededError):
            await quota_guard.ensure_can_create(tenant.id, UsageResource.BRANCHES)

    async def test_cancelled_subscription_is_not_current(
        self, db_session: AsyncSession, plan_catalog: PlanCatalog, quota_guard: QuotaGuard, make_tenant
    ):
        tenant = await make_tenant("gone", PlanCode.PREMIUM)
        service = SubscriptionService(db_session, TenantContext.system(tenant.id), plan_catalog)
        await service.cancel((await service.get_current()).id)

        with pytest.raises(NoActiveSubscriptionError):
            await quota_guard.ensure_can_create(tenant.id, UsageResource.USERS)


def test_branch_code_from_name():
    assert branch_code_from_name("Kuala Lumpur Sentral") == "KUALALUMPU"
    assert branch_code_from_name("Ipoh") == "IPOH"


@pytest.mark.asyncio
class TestBranchService:

    @pytest.fixture
    def service_for(self, db_session: AsyncSession, quota_guard: QuotaGuard):
        def _service(tenant) -> BranchService:
            return BranchService(db_session, TenantContext.system(tenant.id), quota_guard)
        return _service

    async def test_create_within_quota(self, service_for, tenant_a):
        branch = await service_for(tenant_a).create(BranchCreate(name="Bangsar", city="Kuala Lumpur"))

        assert branch.code == "BANGSAR"
        assert branch.tenant_id == tenant_a.id
        assert len(await service_for(tenant_a).list_active()) == 2

    async def test_create_over_quota(self, service_for, make_tenant):
        tenant = await make_tenant("tiny", PlanCode.BASIC)

        with pytest.raises(QuotaExceededError):
            await service_for(tenant).create(BranchCreate(name="Second"))
        assert len(await service_for(tenant).list_active()) == 1

    async def test_deactivation_frees_a_slot(self, service_for, make_tenant):
        tenant = await make_tenant("tiny", PlanCode.BASIC)
        service = service_for(tenant)
        main = (await service.list_active())[0]

        await service.deactivate(main.id)
        branch = await service.create(BranchCreate(name="Replacement", code="NEW"))

        assert branch.code == "NEW"

    async def test_duplicate_code_within_tenant(self, service_for, tenant_a, tenant_b):
        await service_for(tenant_a).create(BranchCreate(name="Bangsar"))

        with pytest.raises(BranchCodeTakenError):
            await service_for(tenant_a).create(BranchCreate(name="Bangsar"))
        # another tenant may reuse it
        await service_for(tenant_b).create(BranchCreate(name="Bangsar"))

    async def test_concurrent_duplicate_code(
        self, monkeypatch, session_factory, plan_catalog: PlanCatalog, service_for, tenant_a
    ):
        tenant_id = tenant_a.id
        await service_for(tenant_a).create(BranchCreate(name="Bangsar"))

        # Second writer whose pre-check ran before the first insert committed
        async with session_factory() as session:
            late = BranchService(
                session,
                TenantContext.system(tenant_id),
                QuotaGuard(session, plan_catalog, UsageTracker(session, plan_catalog)),
            )
            monkeypatch.setattr(late.branches, "get_by_code", AsyncMock(return_value=None))
            with pytest.raises(BranchCodeTakenError):
                await late.create(BranchCreate(name="Bangsar"))

        async with session_factory() as session:
            branches = BranchRepository(session, TenantContext.system(tenant_id))
            assert await branches.count_active() == 2

    async def test_deactivate_foreign_branch(self, db_session: AsyncSession, service_for, tenant_a, tenant_b):
        main_a = await BranchRepository(db_session, TenantContext.system(tenant_a.id)).get_by_code("main")

        with pytest.raises(BranchNotFoundError):
            await service_for(tenant_b).deactivate(main_a.id)


@pytest.mark.asyncio
class TestUserService:

    async def test_create_user_over_quota(
        self, db_session: AsyncSession, plan_catalog: PlanCatalog, quota_guard: QuotaGuard, make_tenant
    ):
        tenant = await make_tenant("tiny", PlanCode.BASIC)
        service = UserService(db_session, TenantContext.system(tenant.id), quota_guard)

        # admin plus four more fills the basic plan's five seats
        for i in range(4):
            await service.create(UserCreate(email=f"staff{i}@tiny.my"))

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.create(UserCreate(email="one-too-many@tiny.my"))
        assert exc_info.value.resource == "users"
        assert exc_info.value.limit == 5

    async def test_home_branch_must_belong_to_tenant(
        self, db_session: AsyncSession, quota_guard: QuotaGuard, tenant_a, tenant_b
    ):
        main_b = await BranchRepository(db_session, TenantContext.system(tenant_b.id)).get_by_code("main")
        service = UserService(db_session, TenantContext.system(tenant_a.id), quota_guard)

        with pytest.raises(BranchNotFoundError):
            await service.create(UserCreate(email="cook@alpha.my", branch_id=main_b.id))
        with pytest.raises(BranchNotFoundError):
            await service.create(UserCreate(email="cook@alpha.my", branch_id=uuid4()))

    async def test_concurrent_duplicate_email(
        self,
        monkeypatch,
        db_session: AsyncSession,
        session_factory,
        plan_catalog: PlanCatalog,
        quota_guard: QuotaGuard,
        tenant_a,
    ):
        tenant_id = tenant_a.id
        await UserService(db_session, TenantContext.system(tenant_id), quota_guard).create(
            UserCreate(email="cook@alpha.my")
        )

        async with session_factory() as session:
            late = UserService(
                session,
                TenantContext.system(tenant_id),
                QuotaGuard(session, plan_catalog, UsageTracker(session, plan_catalog)),
            )
            monkeypatch.setattr(late.users, "get_by_email", AsyncMock(return_value=None))
            with pytest.raises(UserEmailTakenError):
                await late.create(UserCreate(email="Cook@Alpha.my"))

    async def test_create_with_home_branch(self, db_session: AsyncSession, quota_guard: QuotaGuard, tenant_a):
        main = await BranchRepository(db_session, TenantContext.system(tenant_a.id)).get_by_code("main")
        service = UserService(db_session, TenantContext.system(tenant_a.id), quota_guard)

        user = await service.create(UserCreate(email="Cook@Alpha.my", role=UserRole.KITCHEN, branch_id=main.id))

        assert user.email == "cook@alpha.my"
        assert user.branch_id == main.id
        assert user.role == "kitchen"
        with pytest.raises(UserEmailTakenError):
            await service.create(UserCreate(email="cook@alpha.my"))
