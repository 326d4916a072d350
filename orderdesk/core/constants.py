# orderdesk/core/constants.py
from enum import Enum
from typing import FrozenSet


class PlanCode(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


TERMINAL_STATUSES: FrozenSet[SubscriptionStatus] = frozenset(
    {SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED}
)


class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    WAITER = "waiter"
    KITCHEN = "kitchen"
    INVENTORY_MANAGER = "inventory_manager"


class BillingChannel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class UsageResource(str, Enum):
    BRANCHES = "branches"
    USERS = "users"
    ORDERS_PER_MONTH = "orders_per_month"
