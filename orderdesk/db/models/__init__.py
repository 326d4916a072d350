# orderdesk/db/models/__init__.py
from orderdesk.db.models.tenant import Tenant
from orderdesk.db.models.branch import Branch
from orderdesk.db.models.user import User
from orderdesk.db.models.order import Order
from orderdesk.db.models.subscription import Subscription
from orderdesk.db.models.usage import TenantUsageSnapshot
from orderdesk.db.models.billing import BillingHistory

__all__ = [
    "Tenant",
    "Branch",
    "User",
    "Order",
    "Subscription",
    "TenantUsageSnapshot",
    "BillingHistory",
]
