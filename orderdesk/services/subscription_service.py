# orderdesk/services/subscription_service.py
"""
Subscription lifecycle.

    pending  --activate-->     active
    past_due --activate-->     active
    active   --mark_past_due-> past_due
    active   --renew-->        active (end date advanced, auto-renew only)
    past_due --renew-->        active
    active   --expire-->       expired   (terminal)
    pending|active|past_due --cancel--> cancelled (terminal)

Plan changes are only accepted while active and are checked against current
usage first.
"""
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import settings
from orderdesk.core.constants import BillingChannel, PlanCode, SubscriptionStatus, UsageResource
from orderdesk.core.exceptions import (
    DispatchError,
    DuplicateSubscriptionError,
    InvalidTransitionError,
    NoActiveSubscriptionError,
    PlanDowngradeBlockedError,
    SubscriptionNotFoundError,
    TenantNotFoundError,
)
from orderdesk.core.logging import logger
from orderdesk.core.tenant import TenantContext
from orderdesk.db.base import utcnow
from orderdesk.db.models.billing import BillingHistory
from orderdesk.db.models.subscription import Subscription
from orderdesk.db.repositories.billing_repository import BillingHistoryRepository
from orderdesk.db.repositories.subscription_repository import SubscriptionRepository
from orderdesk.db.repositories.tenant_repository import TenantRepository
from orderdesk.schemas.subscription import BillingPayload, SubscriptionPlan
from orderdesk.services.billing_dispatcher import BillingDispatcher
from orderdesk.services.plan_catalog import PlanCatalog
from orderdesk.services.usage_tracker import UsageTracker, plan_limit, snapshot_count

ALLOWED_FROM: Dict[str, FrozenSet[SubscriptionStatus]] = {
    "activate": frozenset({SubscriptionStatus.PENDING, SubscriptionStatus.PAST_DUE}),
    "cancel": frozenset({
        SubscriptionStatus.PENDING,
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.PAST_DUE,
    }),
    "mark past due": frozenset({SubscriptionStatus.ACTIVE}),
    "renew": frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.PAST_DUE}),
    "expire": frozenset({SubscriptionStatus.ACTIVE}),
    "change the plan of": frozenset({SubscriptionStatus.ACTIVE}),
}

# Dimensions re-validated before a plan change; monthly orders reset on their own
PLAN_CHANGE_RESOURCES = (UsageResource.BRANCHES, UsageResource.USERS)


class SubscriptionService:
    """Subscription operations for the tenant of one TenantContext"""

    def __init__(
        self,
        session: AsyncSession,
        context: TenantContext,
        plan_catalog: PlanCatalog,
        usage_tracker: Optional[UsageTracker] = None,
        billing_dispatcher: Optional[BillingDispatcher] = None,
    ):
        self.session = session
        self.context = context.tenant_wide()
        self.plan_catalog = plan_catalog
        self.usage_tracker = usage_tracker or UsageTracker(session, plan_catalog)
        self.billing_dispatcher = billing_dispatcher
        self.subscriptions = SubscriptionRepository(session, self.context)

    @property
    def tenant_id(self) -> UUID:
        return self.context.tenant_id

    def _log_extra(self, subscription: Subscription) -> dict:
        return {"tenant_id": self.tenant_id, "subscription_id": subscription.id}

    def _period(self, plan: SubscriptionPlan) -> timedelta:
        return timedelta(days=plan.duration_days or settings.SUBSCRIPTION_PERIOD_DAYS)

    async def _require(self, subscription_id: UUID) -> Subscription:
        subscription = await self.subscriptions.get(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError(subscription_id)
        return subscription

    @staticmethod
    def _check(subscription: Subscription, action: str) -> None:
        status = subscription.subscription_status
        if status not in ALLOWED_FROM[action]:
            raise InvalidTransitionError(status.value, action)

    async def get_current(self) -> Optional[Subscription]:
        return await self.subscriptions.get_current()

    async def create(self, plan_code: PlanCode, auto_renew: bool = False) -> Subscription:
        """Start a pending subscription for the tenant"""
        plan = self.plan_catalog.get_plan(plan_code)
        if await TenantRepository(self.session).get_by_id(self.tenant_id) is None:
            raise TenantNotFoundError(self.tenant_id)

        existing = await self.subscriptions.get_current()
        if existing is not None:
            raise DuplicateSubscriptionError(self.tenant_id, existing.id)

        try:
            subscription = await self.subscriptions.create({
                "plan_code": plan.code.value,
                "status": SubscriptionStatus.PENDING.value,
                "auto_renew": auto_renew,
                "billing_provider": settings.DEFAULT_BILLING_PROVIDER,
            })
        except IntegrityError:
            # A concurrent create won the unique index on the current subscription
            await self.session.rollback()
            existing = await self.subscriptions.get_current()
            logger.warning("Concurrent subscription create rejected", extra=self.context.log_extra)
            raise DuplicateSubscriptionError(self.tenant_id, existing.id if existing else None)
        logger.info(
            f"Created {plan.display_name} subscription",
            extra=self._log_extra(subscription),
        )
        return subscription

    async def activate(self, subscription_id: UUID, provider: str, external_id: str) -> Subscription:
        """Confirm a subscription with its billing provider"""
        subscription = await self._require(subscription_id)
        self._check(subscription, "activate")

        plan = self.plan_catalog.get_plan(subscription.plan_code)
        start = subscription.start_date or utcnow()
        end = subscription.end_date or start + self._period(plan)
        subscription = await self.subscriptions.update(subscription.id, {
            "status": SubscriptionStatus.ACTIVE.value,
            "billing_provider": provider,
            "external_subscription_id": external_id,
            "start_date": start,
            "end_date": end,
        })
        logger.info(
            f"Activated subscription via {provider}",
            extra=self._log_extra(subscription),
        )

        if self.billing_dispatcher is not None:
            try:
                await self.invoice_tenant()
            except DispatchError as e:
                logger.warning(
                    f"Invoice dispatch failed after activation: {e.message}",
                    extra=self._log_extra(subscription),
                )
        return subscription

    async def request_plan_change(self, new_plan_code: PlanCode) -> Subscription:
        """Switch the active subscription to another plan if current usage fits it"""
        subscription = await self.subscriptions.get_current()
        if subscription is None:
            raise NoActiveSubscriptionError(self.tenant_id)
        self._check(subscription, "change the plan of")

        new_plan = self.plan_catalog.get_plan(new_plan_code)
        snapshot = await self.usage_tracker.capture(self.tenant_id)
        for resource in PLAN_CHANGE_RESOURCES:
            limit = plan_limit(new_plan, resource)
            current = snapshot_count(snapshot, resource)
            if limit > 0 and current > limit:
                logger.warning(
                    f"Plan change to {new_plan.display_name} blocked: {current} {resource.value} > {limit}",
                    extra=self._log_extra(subscription),
                )
                raise PlanDowngradeBlockedError(new_plan.display_name, resource.value, current, limit)

        old_code = subscription.plan_code
        subscription = await self.subscriptions.update(
            subscription.id, {"plan_code": new_plan.code.value}
        )
        logger.info(
            f"Plan changed from {old_code} to {new_plan.code.value}",
            extra=self._log_extra(subscription),
        )
        return subscription

    async def cancel(self, subscription_id: UUID) -> Subscription:
        subscription = await self._require(subscription_id)
        self._check(subscription, "cancel")
        subscription = await self.subscriptions.update(
            subscription.id, {"status": SubscriptionStatus.CANCELLED.value}
        )
        logger.info("Cancelled subscription", extra=self._log_extra(subscription))
        return subscription

    async def mark_past_due(self, subscription_id: UUID) -> Subscription:
        """Payment failed; the tenant keeps access during the grace period"""
        subscription = await self._require(subscription_id)
        self._check(subscription, "mark past due")
        subscription = await self.subscriptions.update(
            subscription.id, {"status": SubscriptionStatus.PAST_DUE.value}
        )
        logger.warning("Subscription payment past due", extra=self._log_extra(subscription))
        return subscription

    async def renew(self, subscription_id: UUID) -> Subscription:
        """Advance the billing period after the provider confirmed a renewal"""
        subscription = await self._require(subscription_id)
        self._check(subscription, "renew")
        if not subscription.auto_renew:
            raise InvalidTransitionError(subscription.status, "auto-renew")

        plan = self.plan_catalog.get_plan(subscription.plan_code)
        period_start = subscription.end_date or utcnow()
        subscription = await self.subscriptions.update(subscription.id, {
            "status": SubscriptionStatus.ACTIVE.value,
            "start_date": period_start,
            "end_date": period_start + self._period(plan),
        })
        logger.info(
            f"Renewed subscription until {subscription.end_date.isoformat()}",
            extra=self._log_extra(subscription),
        )
        return subscription

    async def expire_lapsed(self, now: Optional[datetime] = None) -> int:
        """Expire active, non auto-renewing subscriptions past their end date"""
        now = now or utcnow()
        expired = 0
        for subscription in await self.subscriptions.list_lapsed(now):
            await self.subscriptions.update(
                subscription.id, {"status": SubscriptionStatus.EXPIRED.value}
            )
            logger.info("Subscription expired", extra=self._log_extra(subscription))
            expired += 1
        return expired

    async def build_billing_payload(self) -> Optional[BillingPayload]:
        """Invoice data for the tenant, or None when it is not currently billable"""
        tenant = await TenantRepository(self.session).get_by_id(self.tenant_id)
        if tenant is None or not tenant.is_active:
            return None

        subscription = await self.subscriptions.get_current()
        if subscription is None or subscription.subscription_status != SubscriptionStatus.ACTIVE:
            return None

        plan = self.plan_catalog.get_plan(subscription.plan_code)
        if plan.includes_whatsapp_billing and tenant.admin_phone:
            channel, recipient = BillingChannel.WHATSAPP, tenant.admin_phone
        elif tenant.admin_email:
            channel, recipient = BillingChannel.EMAIL, tenant.admin_email
        else:
            return None

        invoice_url = None
        if settings.BILLING_PORTAL_URL:
            invoice_url = f"{settings.BILLING_PORTAL_URL.rstrip('/')}/invoices/{subscription.id}"

        return BillingPayload(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            channel=channel.value,
            recipient=recipient,
            plan_name=plan.display_name,
            amount=plan.monthly_price,
            currency=tenant.default_currency,
            period_start=subscription.start_date,
            period_end=subscription.end_date,
            invoice_url=invoice_url,
        )

    async def invoice_tenant(self) -> Optional[BillingHistory]:
        """Send the current invoice and record it. DispatchError propagates."""
        if self.billing_dispatcher is None:
            raise RuntimeError("No billing dispatcher configured")

        payload = await self.build_billing_payload()
        if payload is None:
            logger.info("Tenant not billable, skipping invoice", extra={"tenant_id": self.tenant_id})
            return None

        await self.billing_dispatcher.send_invoice(payload)

        subscription = await self._require(payload.subscription_id)
        return await BillingHistoryRepository(self.session, self.context).create({
            "subscription_id": payload.subscription_id,
            "plan_code": subscription.plan_code,
            "amount": payload.amount,
            "currency": payload.currency,
            "period_start": payload.period_start,
            "period_end": payload.period_end,
            "channel": payload.channel,
            "recipient": payload.recipient,
            "invoice_url": payload.invoice_url,
        })
