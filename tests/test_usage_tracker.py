"""
Tests for usage snapshots and near-limit evaluation
"""
import pytest
from datetime import datetime, timedelta
from uuid import uuid4
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import UsageThresholds
from orderdesk.core.constants import PlanCode, UsageResource
from orderdesk.core.exceptions import NoActiveSubscriptionError, TenantNotFoundError
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import utcnow
from orderdesk.db.models.tenant import Tenant
from orderdesk.db.models.usage import TenantUsageSnapshot
from orderdesk.db.repositories.branch_repository import BranchRepository
from orderdesk.db.repositories.order_repository import OrderRepository
from orderdesk.db.repositories.usage_repository import UsageSnapshotRepository
from orderdesk.db.repositories.user_repository import UserRepository
from orderdesk.schemas.subscription import SubscriptionPlan
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.usage_tracker import UsageTracker, month_bounds


def test_month_bounds_mid_year():
    start, end = month_bounds(datetime(2024, 6, 17, 15, 30))
    assert start == datetime(2024, 6, 1)
    assert end == datetime(2024, 7, 1)


def test_month_bounds_december_rolls_over():
    start, end = month_bounds(datetime(2024, 12, 31, 23, 59))
    assert start == datetime(2024, 12, 1)
    assert end == datetime(2025, 1, 1)


@pytest.mark.asyncio
class TestCapture:

    @pytest.fixture
    def tracker(self, db_session: AsyncSession, plan_catalog: PlanCatalog) -> UsageTracker:
        return UsageTracker(db_session, plan_catalog)

    async def test_counts_active_resources(self, db_session: AsyncSession, tracker: UsageTracker, tenant_a: Tenant):
        ctx = TenantContext.system(tenant_a.id)
        branches = BranchRepository(db_session, ctx)
        closed = await branches.create({"name": "Closed", "code": "CLOSED"})
        await branches.deactivate(closed.id)
        await UserRepository(db_session, ctx).create({"email": "waiter@alpha.my"})
        await UserRepository(db_session, ctx).create({"email": "gone@alpha.my", "is_active": False})

        snapshot = await tracker.capture(tenant_a.id)

        assert snapshot.tenant_id == tenant_a.id
        assert snapshot.active_branches == 1
        assert snapshot.active_users == 2
        assert snapshot.orders_current_month == 0

    async def test_counts_only_orders_of_current_month(
        self, db_session: AsyncSession, tracker: UsageTracker, tenant_a: Tenant
    ):
        ctx = TenantContext.system(tenant_a.id)
        main = await BranchRepository(db_session, ctx).get_by_code("main")
        orders = OrderRepository(db_session, ctx.for_branch(main.id))
        month_start, _ = month_bounds(utcnow())
        await orders.create({"order_number": "A-1"})
        await orders.create({"order_number": "A-2"})
        await orders.create({"order_number": "OLD-1", "created_at": month_start - timedelta(days=2)})

        snapshot = await tracker.capture(tenant_a.id)

        assert snapshot.orders_current_month == 2

    async def test_snapshots_are_per_tenant(
        self, tracker: UsageTracker, tenant_a: Tenant, tenant_b: Tenant
    ):
        await tracker.capture(tenant_a.id)
        await tracker.capture(tenant_a.id)
        await tracker.capture(tenant_b.id)

        assert len(await tracker.history(tenant_a.id)) == 2
        assert len(await tracker.history(tenant_b.id)) == 1

    async def test_latest_and_history_newest_first(self, tracker: UsageTracker, tenant_a: Tenant):
        assert await tracker.latest(tenant_a.id) is None

        first = await tracker.capture(tenant_a.id)
        second = await tracker.capture(tenant_a.id)

        history = await tracker.history(tenant_a.id)
        assert [s.id for s in history] == [second.id, first.id]
        assert (await tracker.latest(tenant_a.id)).id == second.id
        assert await tracker.history(tenant_a.id, since=utcnow() + timedelta(minutes=1)) == []

    async def test_capture_order_breaks_timestamp_ties(
        self, db_session: AsyncSession, tracker: UsageTracker, tenant_a: Tenant
    ):
        first = await tracker.capture(tenant_a.id)
        second = await tracker.capture(tenant_a.id)
        await db_session.execute(
            update(TenantUsageSnapshot)
            .where(TenantUsageSnapshot.tenant_id == tenant_a.id)
            .values(captured_at=datetime(2024, 6, 17, 12, 0))
        )
        await db_session.commit()

        assert (first.sequence, second.sequence) == (1, 2)
        assert (await tracker.latest(tenant_a.id)).id == second.id
        assert [s.id for s in await tracker.history(tenant_a.id)] == [second.id, first.id]

    async def test_sequence_is_per_tenant(self, tracker: UsageTracker, tenant_a: Tenant, tenant_b: Tenant):
        await tracker.capture(tenant_a.id)
        await tracker.capture(tenant_a.id)

        assert (await tracker.capture(tenant_b.id)).sequence == 1

    async def test_repeated_capture_gives_same_counts(self, tracker: UsageTracker, tenant_a: Tenant):
        first = await tracker.capture(tenant_a.id)
        second = await tracker.capture(tenant_a.id)

        assert first.id != second.id
        assert (first.active_branches, first.active_users, first.orders_current_month) == (
            second.active_branches, second.active_users, second.orders_current_month
        )

    async def test_unknown_tenant(self, tracker: UsageTracker):
        with pytest.raises(TenantNotFoundError):
            await tracker.capture(uuid4())

    async def test_snapshots_are_immutable(self, db_session: AsyncSession, tracker: UsageTracker, tenant_a: Tenant):
        snapshot = await tracker.capture(tenant_a.id)
        repo = UsageSnapshotRepository(db_session, TenantContext.system(tenant_a.id))

        with pytest.raises(TypeError):
            await repo.update(snapshot.id, {"active_users": 0})
        with pytest.raises(TypeError):
            await repo.delete(snapshot.id)


@pytest.mark.asyncio
class TestNearingLimit:

    async def test_basic_plan_at_branch_limit(self, db_session: AsyncSession, plan_catalog: PlanCatalog, make_tenant):
        tenant = await make_tenant("tiny", PlanCode.BASIC)
        tracker = UsageTracker(db_session, plan_catalog)

        # one branch on a one-branch plan
        assert await tracker.is_nearing_limit(tenant.id) is True

    async def test_standard_plan_with_headroom(self, db_session: AsyncSession, plan_catalog: PlanCatalog, tenant_a: Tenant):
        tracker = UsageTracker(db_session, plan_catalog)
        assert await tracker.is_nearing_limit(tenant_a.id) is False

    async def test_custom_threshold(self, db_session: AsyncSession, plan_catalog: PlanCatalog, tenant_a: Tenant):
        # 1 of 3 branches is above a 0.3 threshold
        tracker = UsageTracker(db_session, plan_catalog, UsageThresholds(branches=0.3))
        assert await tracker.is_nearing_limit(tenant_a.id) is True

    async def test_unlimited_dimensions_are_never_near(
        self, db_session: AsyncSession, plan_catalog: PlanCatalog, make_tenant
    ):
        tenant = await make_tenant("huge", PlanCode.ENTERPRISE)
        tracker = UsageTracker(db_session, plan_catalog, UsageThresholds(branches=0.01, users=0.01))
        snapshot = await tracker.capture(tenant.id)

        assert tracker.resources_near_limit(snapshot, plan_catalog.get_plan(PlanCode.ENTERPRISE)) == []

    async def test_reports_which_resources_are_near(
        self, db_session: AsyncSession, plan_catalog: PlanCatalog, make_tenant
    ):
        tenant = await make_tenant("tiny", PlanCode.BASIC)
        tracker = UsageTracker(db_session, plan_catalog)
        snapshot = await tracker.capture(tenant.id)

        near = tracker.resources_near_limit(snapshot, plan_catalog.get_plan(PlanCode.BASIC))
        assert near == [UsageResource.BRANCHES]

    async def test_requires_subscription(self, db_session: AsyncSession, plan_catalog: PlanCatalog, make_tenant):
        tenant = await make_tenant("nosub", plan_code=None)
        tracker = UsageTracker(db_session, plan_catalog)

        with pytest.raises(NoActiveSubscriptionError):
            await tracker.is_nearing_limit(tenant.id)
        assert await tracker.near_limits(tenant.id, await tracker.capture(tenant.id)) == []

    @pytest.mark.parametrize("active_users,expected", [(9, True), (8, False)])
    async def test_user_threshold_boundary(self, db_session: AsyncSession, plan_catalog: PlanCatalog, active_users, expected):
        tracker = UsageTracker(db_session, plan_catalog)
        plan = SubscriptionPlan(
            code=PlanCode.STANDARD, display_name="Ten Seats", monthly_price=0, annual_price=0, max_users=10
        )
        snapshot = TenantUsageSnapshot(active_branches=0, active_users=active_users, orders_current_month=0)

        assert (UsageResource.USERS in tracker.resources_near_limit(snapshot, plan)) is expected
