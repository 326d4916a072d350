# orderdesk/workers/usage_worker.py
"""
Background job that periodically snapshots usage for every active tenant
and expires lapsed subscriptions.

Run standalone with ``python -m orderdesk.workers.usage_worker``.
"""
import asyncio
import signal
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import settings
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import utcnow
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.services.plan_catalog import PlanCatalog, get_plan_catalog
from orderdesk.services.subscription_service import SubscriptionService
from orderdesk.services.usage_tracker import UsageTracker


class UsageTrackingWorker:
    """
    Each tenant is processed in its own session with its own context, so a
    failure for one tenant is logged and the loop moves on to the next.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        interval_seconds: Optional[float] = None,
        plan_catalog: Optional[PlanCatalog] = None,
    ):
        self.session_factory = session_factory
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.USAGE_WORKER_INTERVAL_SECONDS
        )
        self.plan_catalog = plan_catalog or get_plan_catalog()

    async def _tenant_ids(self):
        async with self.session_factory() as session:
            return await TenantRepository(session).list_active_ids()

    async def process_tenant(self, tenant_id: UUID, now: Optional[datetime] = None) -> None:
        """Expire lapsed subscriptions, then capture and evaluate usage"""
        async with self.session_factory() as session:
            context = TenantContext.system(tenant_id)
            tracker = UsageTracker(session, self.plan_catalog)
            service = SubscriptionService(session, context, self.plan_catalog, usage_tracker=tracker)

            await service.expire_lapsed(now or utcnow())
            snapshot = await tracker.capture(tenant_id)
            await tracker.near_limits(tenant_id, snapshot)

    async def run_once(self, stop_event: Optional[asyncio.Event] = None) -> int:
        """One pass over all active tenants. Returns how many were processed."""
        processed = 0
        for tenant_id in await self._tenant_ids():
            if stop_event is not None and stop_event.is_set():
                break
            try:
                await self.process_tenant(tenant_id)
                processed += 1
            except Exception as e:
                logger.error(
                    f"Usage tracking failed: {str(e)}",
                    exc_info=True,
                    extra={"tenant_id": tenant_id},
                )
        return processed

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick until `stop_event` is set; the wait between ticks is cancellable"""
        logger.info(f"Usage worker started, interval {self.interval_seconds}s")
        while not stop_event.is_set():
            try:
                processed = await self.run_once(stop_event)
                logger.info(f"Usage tick finished for {processed} tenants")
            except Exception as e:
                logger.error(f"Usage tick failed: {str(e)}", exc_info=True)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Usage worker stopped")


async def main() -> None:
    from orderdesk.db.database import async_session_local, close_db, init_db

    await init_db()
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await UsageTrackingWorker(async_session_local).run(stop_event)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
