# orderdesk/db/models/user.py
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, UniqueConstraint
import uuid
from orderdesk.core.constants import UserRole
from orderdesk.db.base import Base, HasAuditFields, HasTenantId


class User(HasTenantId, HasAuditFields, Base):
    """Tenant member, counted against the user quota while active"""
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    role = Column(String(32), default=UserRole.WAITER.value, nullable=False)

    # Home branch; tenant admins have none
    branch_id = Column(Uuid, ForeignKey("branches.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
