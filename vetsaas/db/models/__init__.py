"""Database models package exports."""

from vetsaas.db.models.plan import Plan
from vetsaas.db.models.role import Role, UserRole
from vetsaas.db.models.subscription import (
    BillingInterval,
    SubscriptionStatus,
    TenantSubscription,
)
from vetsaas.db.models.subscription_event import SubscriptionEvent
from vetsaas.db.models.tenant import Tenant, TenantStatus
from vetsaas.db.models.tenant_settings import TenantSettings
from vetsaas.db.models.usage_stats import TenantUsageStats
from vetsaas.db.models.user import User

__all__ = [
    "BillingInterval",
    "Plan",
    "Role",
    "SubscriptionEvent",
    "SubscriptionStatus",
    "Tenant",
    "TenantSettings",
    "TenantStatus",
    "TenantSubscription",
    "TenantUsageStats",
    "User",
    "UserRole",
]
