# orderdesk/db/base.py
"""
Declarative base and the capabilities shared by persisted entities.

Entities compose the capabilities they need instead of inheriting a chain:

    class Order(HasTenantId, HasBranchId, HasAuditFields, Base): ...

``HasTenantId`` marks a Scoped Entity. Scoped entities can only be reached
through ``TenantScopedRepository``; ``HasBranchId`` additionally narrows
reads to the context branch when one is set.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable across PostgreSQL and SQLite"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HasAuditFields:
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    created_by = Column(Uuid, nullable=True)
    updated_by = Column(Uuid, nullable=True)


class HasTenantId:
    @declared_attr
    def tenant_id(cls):
        return Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)


class HasBranchId:
    @declared_attr
    def branch_id(cls):
        return Column(Uuid, ForeignKey("branches.id"), nullable=False, index=True)


def is_tenant_scoped(model) -> bool:
    return isinstance(model, type) and issubclass(model, HasTenantId)


def is_branch_scoped(model) -> bool:
    return isinstance(model, type) and issubclass(model, HasBranchId)
