# orderdesk/db/models/order.py
from sqlalchemy import Column, String, Numeric, Uuid
import uuid
from orderdesk.db.base import Base, HasAuditFields, HasBranchId, HasTenantId


class Order(HasTenantId, HasBranchId, HasAuditFields, Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    order_number = Column(String(32), nullable=False)
    total_amount = Column(Numeric(12, 2), default=0, nullable=False)
