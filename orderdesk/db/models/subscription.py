# orderdesk/db/models/subscription.py
from sqlalchemy import Column, String, Boolean, DateTime, Index, Uuid, text
import uuid
from orderdesk.core.constants import SubscriptionStatus, TERMINAL_STATUSES
from orderdesk.db.base import Base, HasAuditFields, HasTenantId

# Rows still in play: anything not cancelled or expired
NON_TERMINAL = text(
    "status NOT IN ({})".format(", ".join(f"'{s}'" for s in sorted(s.value for s in TERMINAL_STATUSES)))
)


class Subscription(HasTenantId, HasAuditFields, Base):
    """A tenant's subscription to a plan; at most one is non-terminal per tenant"""
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index(
            "uq_subscriptions_tenant_current",
            "tenant_id",
            unique=True,
            postgresql_where=NON_TERMINAL,
            sqlite_where=NON_TERMINAL,
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    plan_code = Column(String(32), nullable=False)
    status = Column(String(16), default=SubscriptionStatus.PENDING.value, nullable=False, index=True)

    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    auto_renew = Column(Boolean, default=False, nullable=False)

    # Billing provider
    billing_provider = Column(String(50), nullable=False)
    external_subscription_id = Column(String(255), nullable=True)

    @property
    def subscription_status(self) -> SubscriptionStatus:
        return SubscriptionStatus(self.status)
