# orderdesk/db/models/tenant.py
from sqlalchemy import Column, String, Boolean, Uuid
import uuid
from orderdesk.db.base import Base, HasAuditFields


class Tenant(HasAuditFields, Base):
    """Restaurant operator account, the unit of data isolation"""
    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(64), unique=True, nullable=False, index=True)
    country_code = Column(String(2), default="MY", nullable=False)
    default_currency = Column(String(3), default="MYR", nullable=False)

    # Admin contact, used as the billing recipient
    admin_email = Column(String(255), nullable=True)
    admin_phone = Column(String(32), nullable=True)

    # Tenants are deactivated, never deleted
    is_active = Column(Boolean, default=True, nullable=False)
