"""Repository layer package."""

from vetsaas.repositories.event_repo import EventRepo
from vetsaas.repositories.plan_repo import PlanRepo
from vetsaas.repositories.role_repo import RoleRepo
from vetsaas.repositories.subscription_repo import SubscriptionRepo
from vetsaas.repositories.tenant_repo import TenantRepo
from vetsaas.repositories.usage_repo import UsageRepo
from vetsaas.repositories.user_repo import UserRepo

__all__ = [
    "EventRepo",
    "PlanRepo",
    "RoleRepo",
    "SubscriptionRepo",
    "TenantRepo",
    "UsageRepo",
    "UserRepo",
]
