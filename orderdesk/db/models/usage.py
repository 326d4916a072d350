# orderdesk/db/models/usage.py
from sqlalchemy import Column, Integer, DateTime, Uuid, UniqueConstraint
import uuid
from orderdesk.db.base import Base, HasAuditFields, HasTenantId, utcnow


class TenantUsageSnapshot(HasTenantId, HasAuditFields, Base):
    """Point-in-time usage of a tenant. Rows are append-only."""
    __tablename__ = "tenant_usage_snapshots"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sequence", name="uq_usage_snapshots_tenant_sequence"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Per-tenant capture order; breaks ties between equal timestamps
    sequence = Column(Integer, nullable=False)

    active_branches = Column(Integer, default=0, nullable=False)
    active_users = Column(Integer, default=0, nullable=False)
    orders_current_month = Column(Integer, default=0, nullable=False)

    captured_at = Column(DateTime, default=utcnow, nullable=False, index=True)
