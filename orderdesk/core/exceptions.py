# orderdesk/core/exceptions.py
"""Domain errors for tenancy, subscriptions and billing.

Quota and validation errors go back to the caller that triggered them and are
never retried. ``DispatchError`` wraps a notification transport failure; the
original exception is kept as ``__cause__``.
"""
from typing import Optional
from uuid import UUID


class OrderDeskError(Exception):
    """Base class for all domain errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TenantNotFoundError(OrderDeskError):
    def __init__(self, tenant: object):
        super().__init__(f"Tenant {tenant} not found")
        self.tenant = tenant


class TenantContextMissingError(OrderDeskError):
    def __init__(self, message: str = "Tenant could not be resolved for this request"):
        super().__init__(message)


class BranchNotFoundError(OrderDeskError):
    def __init__(self, branch: object):
        super().__init__(f"Branch {branch} not found")
        self.branch = branch


class BranchCodeTakenError(OrderDeskError):
    def __init__(self, code: str):
        super().__init__(f"Branch code {code} is already in use")
        self.code = code


class TenantCodeTakenError(OrderDeskError):
    def __init__(self, code: str):
        super().__init__(f"Tenant code {code} already exists")
        self.code = code


class NoActiveSubscriptionError(OrderDeskError):
    def __init__(self, tenant_id: UUID):
        super().__init__(f"No active subscription found for tenant {tenant_id}")
        self.tenant_id = tenant_id


class SubscriptionNotFoundError(OrderDeskError):
    def __init__(self, subscription_id: UUID):
        super().__init__(f"Subscription {subscription_id} not found")
        self.subscription_id = subscription_id


class DuplicateSubscriptionError(OrderDeskError):
    def __init__(self, tenant_id: UUID, existing_id: Optional[UUID] = None):
        super().__init__(
            f"Tenant {tenant_id} already holds subscription {existing_id}"
        )
        self.tenant_id = tenant_id
        self.existing_id = existing_id


class UnknownPlanError(OrderDeskError):
    def __init__(self, code: str):
        super().__init__(f"Plan {code} is not configured")
        self.code = code


class QuotaExceededError(OrderDeskError):
    def __init__(self, resource: str, limit: int, plan_name: str):
        super().__init__(
            f"{resource.capitalize()} limit reached for plan {plan_name}. "
            f"Maximum allowed: {limit}."
        )
        self.resource = resource
        self.limit = limit
        self.plan_name = plan_name


class PlanDowngradeBlockedError(OrderDeskError):
    def __init__(self, plan_name: str, resource: str, current: int, limit: int):
        super().__init__(
            f"Cannot switch to plan {plan_name}: {current} active {resource} "
            f"exceeds the plan limit of {limit}."
        )
        self.plan_name = plan_name
        self.resource = resource
        self.current = current
        self.limit = limit


class InvalidTransitionError(OrderDeskError):
    def __init__(self, current: str, attempted: str):
        super().__init__(
            f"Cannot {attempted} a subscription in status {current}"
        )
        self.current = current
        self.attempted = attempted


class ScopeViolationError(OrderDeskError):
    """Raised when a caller tries to move a record to another tenant or branch"""

    def __init__(self, field: str):
        super().__init__(f"{field} cannot be changed after creation")
        self.field = field


class DispatchError(OrderDeskError):
    def __init__(self, channel: str, recipient: str, reason: Optional[str] = None):
        message = f"Failed to dispatch invoice via {channel} to {recipient}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.channel = channel
        self.recipient = recipient


class UserEmailTakenError(OrderDeskError):
    def __init__(self, email: str):
        super().__init__(f"User {email} already exists")
        self.email = email


class UserNotFoundError(OrderDeskError):
    def __init__(self, user_id: UUID):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id
