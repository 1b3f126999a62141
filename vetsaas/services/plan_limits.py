"""Plan limit checks and usage reporting.

The checks here are pure: they take an immutable :class:`PlanLimits` and a
:class:`PlanUsage` snapshot and never touch the database. The async loaders at
the bottom build those values for a tenant at read time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.core.exceptions import PlanLimitError, ValidationError
from vetsaas.db.models.plan import Plan
from vetsaas.db.models.usage_stats import TenantUsageStats
from vetsaas.repositories.subscription_repo import SubscriptionRepo
from vetsaas.repositories.usage_repo import UsageRepo
from vetsaas.services.plan_catalog import PLAN_CATALOG, UNLIMITED


logger = logging.getLogger(__name__)

BYTES_PER_GB = 1024 ** 3
WARNING_THRESHOLD = 80

RESOURCES = ("pets", "users", "whatsapp", "storage", "cash_registers")

# action name -> resource it consumes
ACTIONS: Mapping[str, str] = MappingProxyType(
    {
        "add_pet": "pets",
        "add_user": "users",
        "send_whatsapp": "whatsapp",
        "upload_file": "storage",
        "add_cash_register": "cash_registers",
    }
)


def is_within_limit(usage: int, limit: int) -> bool:
    """True when one more unit fits: always for ``UNLIMITED``, else ``usage < limit``."""

    if limit == UNLIMITED:
        return True
    return usage < limit


@dataclass(frozen=True)
class PlanLimits:
    plan_key: str
    max_pets: int
    max_users: int
    max_monthly_whatsapp: int
    max_storage_gb: int
    max_cash_registers: int
    features: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanLimits":
        return cls(
            plan_key=plan.key,
            max_pets=plan.max_pets,
            max_users=plan.max_users,
            max_monthly_whatsapp=plan.max_monthly_whatsapp,
            max_storage_gb=plan.max_storage_gb,
            max_cash_registers=plan.max_cash_registers,
            features=MappingProxyType(dict(plan.features or {})),
        )

    def limit_for(self, resource: str) -> int:
        """Limit for ``resource``; storage is reported in bytes."""

        if resource == "pets":
            return self.max_pets
        if resource == "users":
            return self.max_users
        if resource == "whatsapp":
            return self.max_monthly_whatsapp
        if resource == "storage":
            if self.max_storage_gb == UNLIMITED:
                return UNLIMITED
            return self.max_storage_gb * BYTES_PER_GB
        if resource == "cash_registers":
            return self.max_cash_registers
        raise ValidationError(f"Unknown resource: {resource}")

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["features"] = dict(self.features)
        return data


def _free_plan_limits() -> PlanLimits:
    definition = PLAN_CATALOG["BASICO"]
    return PlanLimits(
        plan_key="BASICO",
        max_pets=definition["max_pets"],
        max_users=definition["max_users"],
        max_monthly_whatsapp=definition["max_monthly_whatsapp"],
        max_storage_gb=definition["max_storage_gb"],
        max_cash_registers=definition["max_cash_registers"],
        features=MappingProxyType(dict(definition["features"])),
    )


FREE_PLAN_LIMITS = _free_plan_limits()


@dataclass(frozen=True)
class PlanUsage:
    pets: int = 0
    users: int = 0
    whatsapp: int = 0
    storage_bytes: int = 0
    cash_registers: int = 0

    @classmethod
    def from_stats(cls, stats: Optional[TenantUsageStats]) -> "PlanUsage":
        if stats is None:
            return cls()
        return cls(
            pets=stats.total_pets,
            users=stats.total_users,
            whatsapp=stats.monthly_whatsapp_sent,
            storage_bytes=stats.storage_used_bytes,
            cash_registers=stats.cash_registers,
        )

    def usage_for(self, resource: str) -> int:
        if resource == "storage":
            return self.storage_bytes
        if resource not in RESOURCES:
            raise ValidationError(f"Unknown resource: {resource}")
        return getattr(self, resource)


@dataclass(frozen=True)
class LimitCheck:
    allowed: bool
    current: int
    limit: int
    remaining: int


def check_limit(limits: PlanLimits, usage: PlanUsage, resource: str) -> LimitCheck:
    limit = limits.limit_for(resource)
    current = usage.usage_for(resource)
    remaining = UNLIMITED if limit == UNLIMITED else max(limit - current, 0)
    return LimitCheck(
        allowed=is_within_limit(current, limit),
        current=current,
        limit=limit,
        remaining=remaining,
    )


def validate_plan_action(
    limits: PlanLimits, usage: PlanUsage, action: str, quantity: int = 1
) -> None:
    """Raise :class:`PlanLimitError` if ``quantity`` more units would not fit."""

    resource = ACTIONS.get(action)
    if resource is None:
        raise ValidationError(f"Unknown action: {action}")
    if quantity < 1:
        raise ValidationError("quantity must be positive")

    limit = limits.limit_for(resource)
    current = usage.usage_for(resource)
    # the last unit must still satisfy usage < limit
    if not is_within_limit(current + quantity - 1, limit):
        raise PlanLimitError(resource, current, limit)


def check_feature_access(limits: PlanLimits, feature: str) -> bool:
    return bool(limits.features.get(feature, False))


def _percentage(current: int, limit: int) -> int:
    if limit == UNLIMITED:
        return 0
    if limit == 0:
        return 100
    return min(round(current * 100 / limit), 100)


def plan_status(limits: PlanLimits, usage: PlanUsage) -> Dict[str, Any]:
    """Usage percentages per resource plus warnings at 80% and over."""

    percentages: Dict[str, int] = {}
    warnings: List[str] = []
    for resource in RESOURCES:
        percent = _percentage(usage.usage_for(resource), limits.limit_for(resource))
        percentages[resource] = percent
        if percent >= WARNING_THRESHOLD:
            warnings.append(f"{resource} usage at {percent}% of plan limit")
    return {"percentages": percentages, "warnings": warnings}


async def get_plan_limits(session: AsyncSession, tenant_id: UUID) -> PlanLimits:
    subscription = await SubscriptionRepo(session).get_with_plan(tenant_id)
    if subscription is None or subscription.plan is None:
        logger.debug(f"Tenant {tenant_id} has no subscription; using free limits")
        return FREE_PLAN_LIMITS
    return PlanLimits.from_plan(subscription.plan)


async def get_plan_usage(session: AsyncSession, tenant_id: UUID) -> PlanUsage:
    stats = await UsageRepo(session).get_for_tenant(tenant_id)
    return PlanUsage.from_stats(stats)
