# orderdesk/db/models/branch.py
from sqlalchemy import Column, String, Boolean, Uuid, UniqueConstraint
import uuid
from orderdesk.db.base import Base, HasAuditFields, HasTenantId


class Branch(HasTenantId, HasAuditFields, Base):
    """Physical location of a tenant, counted against the branch quota while active"""
    __tablename__ = "branches"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_branches_tenant_code"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(32), nullable=False)
    address = Column(String(500), default="", nullable=False)
    city = Column(String(120), default="", nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
