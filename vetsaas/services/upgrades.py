"""Plan changes: trial conversion through hosted checkout, a direct paid change, and downgrade checks."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.core.config import settings
from vetsaas.core.exceptions import NotFoundError, ValidationError
from vetsaas.db.models.plan import Plan
from vetsaas.db.models.subscription import (
    BillingInterval,
    SubscriptionStatus,
    TenantSubscription,
)
from vetsaas.db.models.tenant import Tenant
from vetsaas.db.types import utcnow
from vetsaas.repositories.event_repo import EventRepo
from vetsaas.repositories.plan_repo import PlanRepo
from vetsaas.repositories.subscription_repo import SubscriptionRepo
from vetsaas.services import stripe_service
from vetsaas.services.plan_catalog import (
    PAID_PLAN_KEYS,
    PLAN_CATALOG,
    UNLIMITED,
    get_plan_or_404,
    plan_price,
)
from vetsaas.services.plan_limits import (
    BYTES_PER_GB,
    PlanLimits,
    get_plan_limits,
    get_plan_usage,
)
from vetsaas.services.subscriptions import parse_billing_interval, sync_tenant_status


logger = logging.getLogger(__name__)

CHANGEABLE_REMOTE_STATUSES = {"active", "trialing"}

# provider status -> local status
REMOTE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.UNPAID,
    "canceled": SubscriptionStatus.CANCELLED,
    "incomplete": SubscriptionStatus.INCOMPLETE,
    "incomplete_expired": SubscriptionStatus.INCOMPLETE,
}


@dataclass
class TrialConversionResult:
    checkout_url: str
    session_id: str
    plan_key: str
    billing_interval: str
    type: str = "trial_conversion"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SubscriptionUpgradeResult:
    subscription: Dict[str, Any]
    proration: Dict[str, Any]
    new_pricing: Dict[str, Any]
    direction: str
    type: str = "subscription_upgrade"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def change_direction(current: Plan, target: Plan) -> str:
    if target.tier > current.tier:
        return "upgrade"
    if target.tier < current.tier:
        return "downgrade"
    return "interval_change"


def _period_length(interval: BillingInterval) -> relativedelta:
    if interval == BillingInterval.ANNUAL:
        return relativedelta(years=1)
    return relativedelta(months=1)


def subscription_summary(subscription: TenantSubscription) -> Dict[str, Any]:
    return {
        "id": str(subscription.id),
        "plan_key": subscription.plan.key if subscription.plan else None,
        "status": subscription.status.value,
        "billing_interval": subscription.billing_interval.value,
        "current_period_start": subscription.current_period_start,
        "current_period_end": subscription.current_period_end,
        "cancel_at_period_end": subscription.cancel_at_period_end,
    }


async def _start_checkout(
    session: AsyncSession,
    *,
    tenant: Tenant,
    user_id: str,
    email: Optional[str],
    target: Plan,
    interval: BillingInterval,
) -> TrialConversionResult:
    price_id = stripe_service.get_price_id(target.key, interval.value)
    had_customer = bool(tenant.stripe_customer_id)
    customer_id = await stripe_service.get_or_create_customer(tenant, email)
    if not had_customer:
        # keep the new customer even if checkout creation fails
        await session.commit()
    checkout = await stripe_service.create_checkout_session(
        customer_id=customer_id,
        price_id=price_id,
        tenant_id=str(tenant.id),
        plan_key=target.key,
        user_id=user_id,
        billing_interval=interval.value,
    )
    await EventRepo(session).record(
        tenant.id,
        "checkout_started",
        user_id=user_id,
        details={
            "plan_key": target.key,
            "billing_interval": interval.value,
            "checkout_session_id": checkout["id"],
        },
    )
    await session.commit()
    logger.info(f"Tenant {tenant.id} started checkout for {target.key} ({interval.value})")
    return TrialConversionResult(
        checkout_url=checkout["url"],
        session_id=checkout["id"],
        plan_key=target.key,
        billing_interval=interval.value,
    )


async def change_plan(
    session: AsyncSession,
    *,
    tenant: Tenant,
    user_id: str,
    target_plan: str,
    billing_interval: str,
    from_trial: bool = False,
    email: Optional[str] = None,
) -> TrialConversionResult | SubscriptionUpgradeResult:
    """Move the tenant to ``target_plan`` / ``billing_interval``.

    Trial tenants without a provider subscription (or callers passing
    ``from_trial``) are sent to hosted checkout and the local subscription is
    left untouched; the provider confirms the change asynchronously. Paying
    tenants are moved immediately with prorated invoicing.
    """

    if target_plan not in PAID_PLAN_KEYS:
        raise ValidationError(f"Invalid target plan: {target_plan}")
    interval = parse_billing_interval(billing_interval)
    target = await get_plan_or_404(session, target_plan)

    if from_trial or (tenant.is_trial_period and not tenant.stripe_subscription_id):
        return await _start_checkout(
            session,
            tenant=tenant,
            user_id=user_id,
            email=email,
            target=target,
            interval=interval,
        )

    if not tenant.stripe_subscription_id:
        raise ValidationError("No active subscription to change")

    remote = await stripe_service.retrieve_subscription(tenant.stripe_subscription_id)
    if remote["status"] not in CHANGEABLE_REMOTE_STATUSES:
        raise ValidationError(
            f"Subscription is {remote['status']}; only active or trialing subscriptions can change plan"
        )

    subscription = await SubscriptionRepo(session).get_with_plan(tenant.id)
    if subscription is None or subscription.plan is None:
        raise NotFoundError("Current plan not found")
    current = subscription.plan
    if current.key == target.key and subscription.billing_interval == interval:
        raise ValidationError("Subscription is already on this plan and interval")

    direction = change_direction(current, target)
    price_id = stripe_service.get_price_id(target.key, interval.value)
    updated = await stripe_service.update_subscription_price(
        tenant.stripe_subscription_id, remote["item_id"], price_id
    )
    invoice = await stripe_service.preview_upcoming_invoice(
        tenant.stripe_customer_id or remote["customer"],
        tenant.stripe_subscription_id,
    )

    now = utcnow()
    subscription.plan_id = target.id
    subscription.plan = target
    subscription.billing_interval = interval
    subscription.status = REMOTE_STATUS_MAP.get(updated["status"], SubscriptionStatus.INCOMPLETE)
    subscription.current_period_start = now
    if updated.get("current_period_end"):
        subscription.current_period_end = datetime.fromtimestamp(
            updated["current_period_end"], tz=timezone.utc
        )
    else:
        subscription.current_period_end = now + _period_length(interval)
    subscription.stripe_subscription_id = tenant.stripe_subscription_id
    sync_tenant_status(tenant, subscription)

    await EventRepo(session).record(
        tenant.id,
        "plan_changed",
        user_id=user_id,
        details={
            "from_plan": current.key,
            "to_plan": target.key,
            "billing_interval": interval.value,
            "direction": direction,
        },
    )
    await session.commit()
    logger.info(f"Tenant {tenant.id} {direction}: {current.key} -> {target.key} ({interval.value})")

    due_date = None
    if invoice.get("next_payment_attempt"):
        due_date = datetime.fromtimestamp(invoice["next_payment_attempt"], tz=timezone.utc)

    return SubscriptionUpgradeResult(
        subscription=subscription_summary(subscription),
        proration={
            "amount": Decimal(invoice["amount_due"]) / 100,
            "currency": str(invoice["currency"]).upper(),
            "due_date": due_date,
        },
        new_pricing={
            "amount": plan_price(target, interval.value),
            "interval": interval.value,
            "currency": settings.billing.currency,
        },
        direction=direction,
    )


async def upgrade_options(session: AsyncSession, tenant: Tenant) -> Dict[str, Any]:
    """Current plan state plus every other purchasable plan."""

    subscription = await SubscriptionRepo(session).get_with_plan(tenant.id)
    current = subscription.plan if subscription else None

    options: List[Dict[str, Any]] = []
    for plan in await PlanRepo(session).list_active():
        if plan.key not in PAID_PLAN_KEYS:
            continue
        if current is not None and plan.key == current.key:
            continue
        options.append(
            {
                "key": plan.key,
                "name": plan.name,
                "tier": plan.tier,
                "direction": change_direction(current, plan) if current else "upgrade",
                "monthly_price": plan.monthly_price,
                "annual_price": plan.annual_price,
                "is_recommended": plan.is_recommended,
            }
        )

    return {
        "current_plan": current.key if current else None,
        "current_tier": current.tier if current else None,
        "billing_interval": subscription.billing_interval.value if subscription else None,
        "subscription_status": tenant.subscription_status.value,
        "is_trial_period": tenant.is_trial_period,
        "trial_ends_at": tenant.trial_ends_at,
        "has_payment_subscription": bool(tenant.stripe_subscription_id),
        "options": options,
    }


# resources that cannot shrink on their own; the monthly WhatsApp counter resets
DOWNGRADE_RESOURCES = ("pets", "users", "storage", "cash_registers")

_SUGGESTIONS = {
    "pets": "Archive or remove {excess} pets",
    "users": "Remove {excess} users",
    "storage": "Free up {excess} GB of storage",
    "cash_registers": "Close {excess} cash registers",
}


@dataclass
class DowngradeValidation:
    can_downgrade: bool
    current_plan: str
    target_plan: Dict[str, Any]
    current_usage: Dict[str, Any]
    blockers: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _storage_gb(storage_bytes: int) -> float:
    return round(storage_bytes / BYTES_PER_GB, 2)


def downgrade_blockers(target: PlanLimits, usage: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One blocker per resource whose current usage exceeds the target limit.

    Storage is compared and reported in GB.
    """

    blockers: List[Dict[str, Any]] = []
    for resource in DOWNGRADE_RESOURCES:
        if resource == "storage":
            new_limit = target.max_storage_gb
        else:
            new_limit = target.limit_for(resource)
        current = usage[resource]
        if new_limit == UNLIMITED or current <= new_limit:
            continue
        excess = current - new_limit
        if resource == "storage":
            excess = round(excess, 2)
        blockers.append(
            {
                "type": "limit_exceeded",
                "resource": resource,
                "current": current,
                "new_limit": new_limit,
                "excess": excess,
                "suggestion": _SUGGESTIONS[resource].format(excess=excess),
            }
        )
    return blockers


async def validate_downgrade(
    session: AsyncSession, tenant: Tenant, target_plan: str
) -> DowngradeValidation:
    """Report what would stop the tenant from fitting into ``target_plan``.

    Advisory only: :func:`change_plan` never consults it.
    """

    key = target_plan.strip().upper()
    if key not in PLAN_CATALOG:
        raise NotFoundError(f"Plan not found: {target_plan}")
    target = PlanLimits.from_plan(await get_plan_or_404(session, key))
    current = await get_plan_limits(session, tenant.id)
    usage = await get_plan_usage(session, tenant.id)

    current_usage = {
        "pets": usage.pets,
        "users": usage.users,
        "storage": _storage_gb(usage.storage_bytes),
        "cash_registers": usage.cash_registers,
    }
    blockers = downgrade_blockers(target, current_usage)

    warnings: List[Dict[str, Any]] = []
    for feature, enabled in current.features.items():
        if enabled and not target.features.get(feature, False):
            warnings.append(
                {
                    "type": "feature_loss",
                    "feature": feature,
                    "message": f"{feature} is not included in {key}",
                }
            )

    if blockers:
        logger.info(
            f"Tenant {tenant.id} cannot move to {key}: "
            f"{', '.join(b['resource'] for b in blockers)} over limit"
        )
    return DowngradeValidation(
        can_downgrade=not blockers,
        current_plan=current.plan_key,
        target_plan={"key": key, "name": PLAN_CATALOG[key]["name"], "limits": target.to_dict()},
        current_usage=current_usage,
        blockers=blockers,
        warnings=warnings,
    )
