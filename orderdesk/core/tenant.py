# orderdesk/core/tenant.py
"""Tenant context carried by every operation that touches tenant data."""
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Protocol
from uuid import UUID


@dataclass(frozen=True)
class TenantContext:
    """
    Resolved tenant (and optional branch) for one logical operation.

    Instances are immutable and never shared between concurrent operations;
    a request gets its own from the resolver, a background job builds one per
    tenant with ``TenantContext.system``.
    """
    tenant_id: UUID
    branch_id: Optional[UUID] = None
    tenant_code: Optional[str] = None
    branch_code: Optional[str] = None
    user_id: Optional[UUID] = None

    @classmethod
    def system(cls, tenant_id: UUID, tenant_code: Optional[str] = None) -> "TenantContext":
        """Tenant-wide context for background and provisioning work"""
        return cls(tenant_id=tenant_id, tenant_code=tenant_code)

    def for_branch(self, branch_id: UUID, branch_code: Optional[str] = None) -> "TenantContext":
        return replace(self, branch_id=branch_id, branch_code=branch_code)

    def for_user(self, user_id: UUID) -> "TenantContext":
        return replace(self, user_id=user_id)

    def tenant_wide(self) -> "TenantContext":
        return replace(self, branch_id=None, branch_code=None)

    @property
    def log_extra(self) -> dict:
        extra = {"tenant_id": self.tenant_id}
        if self.branch_id is not None:
            extra["branch_id"] = self.branch_id
        if self.user_id is not None:
            extra["user_id"] = self.user_id
        return extra


class TenantContextProvider(Protocol):
    """Resolves the tenant context of the current operation from request metadata"""

    async def resolve(self, headers: Mapping[str, str]) -> Optional[TenantContext]:
        ...
