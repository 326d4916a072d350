# orderdesk/db/models/billing.py
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Uuid
import uuid
from orderdesk.db.base import Base, HasAuditFields, HasTenantId


class BillingHistory(HasTenantId, HasAuditFields, Base):
    """Invoice successfully dispatched to a tenant"""
    __tablename__ = "billing_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    subscription_id = Column(Uuid, nullable=False, index=True)
    plan_code = Column(String(32), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    period_start = Column(DateTime, nullable=True)
    period_end = Column(DateTime, nullable=True)

    # Delivery
    channel = Column(String(16), nullable=False)
    recipient = Column(String(255), nullable=False)

    paid = Column(Boolean, default=False, nullable=False)
    invoice_url = Column(String(500), nullable=True)
