"""Subscription initialization and tenant status synchronisation."""
from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.core.config import settings
from vetsaas.core.exceptions import NotFoundError, ValidationError
from vetsaas.db.models.plan import Plan
from vetsaas.db.models.subscription import (
    BillingInterval,
    SubscriptionStatus,
    TenantSubscription,
)
from vetsaas.db.models.tenant import Tenant, TenantStatus
from vetsaas.db.types import utcnow
from vetsaas.repositories.subscription_repo import SubscriptionRepo


logger = logging.getLogger(__name__)

TRIAL_DAYS = settings.billing.trial_days
TRIAL_ENDING_SOON_DAYS = 3

_INTERVAL_ALIASES = {
    "monthly": BillingInterval.MONTHLY,
    "annual": BillingInterval.ANNUAL,
    "yearly": BillingInterval.ANNUAL,
}


def parse_billing_interval(value: str | BillingInterval) -> BillingInterval:
    """Accept ``monthly``, ``annual`` or its alias ``yearly``."""

    if isinstance(value, BillingInterval):
        return value
    interval = _INTERVAL_ALIASES.get(str(value).lower())
    if interval is None:
        raise ValidationError(f"Invalid billing interval: {value}")
    return interval


def sync_tenant_status(tenant: Tenant, subscription: TenantSubscription) -> None:
    """Copy the subscription's status onto the tenant's read-optimised fields."""

    tenant.subscription_status = subscription.status
    tenant.is_trial_period = subscription.status == SubscriptionStatus.TRIALING
    if subscription.stripe_subscription_id:
        tenant.stripe_subscription_id = subscription.stripe_subscription_id


async def initialize_subscription(
    session: AsyncSession,
    *,
    tenant: Tenant,
    plan: Plan | None,
    billing_interval: str | BillingInterval,
    now: datetime,
) -> TenantSubscription:
    """Create the trial subscription for a freshly created tenant.

    The period end is the tenant's ``trial_ends_at`` object itself so the two
    timestamps can never drift apart.
    """

    if plan is None:
        raise NotFoundError("Plan not found")
    if tenant.trial_ends_at is None:
        raise ValidationError("Tenant has no trial end date")

    subscription = TenantSubscription(
        tenant_id=tenant.id,
        plan_id=plan.id,
        status=SubscriptionStatus.TRIALING,
        billing_interval=parse_billing_interval(billing_interval),
        current_period_start=now,
        current_period_end=tenant.trial_ends_at,
    )
    subscription.plan = plan
    await SubscriptionRepo(session).add(subscription)
    sync_tenant_status(tenant, subscription)

    logger.info(
        f"Trial subscription {subscription.id} on plan {plan.key} for tenant {tenant.id} "
        f"ends {subscription.current_period_end.isoformat()}"
    )
    return subscription


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    status: str
    trial_state: Optional[str] = None
    days_remaining: Optional[int] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def trial_state(tenant: Tenant, now: datetime) -> tuple[str, Optional[int]]:
    """Classify the trial as ``active``, ``ending_soon``, ``expired`` or ``converted``.

    Days remaining round up while the trial runs and down once it is over, so
    an expired trial always reports a negative count.
    """

    if not tenant.is_trial_period or tenant.trial_ends_at is None:
        return "converted", None

    days = (tenant.trial_ends_at - now).total_seconds() / 86400
    if days <= 0:
        return "expired", min(math.floor(days), -1)
    remaining = math.ceil(days)
    if remaining <= TRIAL_ENDING_SOON_DAYS:
        return "ending_soon", remaining
    return "active", remaining


def check_subscription_access(
    tenant: Tenant, now: Optional[datetime] = None
) -> AccessDecision:
    """Decide whether the tenant may use paid functionality right now.

    Only an active subscription or a trial that has not ended grants access.
    An expired trial is denied even while the stored status is still
    ``TRIALING``.
    """

    now = now or utcnow()
    status = tenant.subscription_status
    state, days_remaining = trial_state(tenant, now)

    if tenant.status != TenantStatus.ACTIVE:
        reason = f"tenant_{tenant.status.value.lower()}"
        allowed = False
    elif status == SubscriptionStatus.ACTIVE:
        reason = None
        allowed = True
    elif status == SubscriptionStatus.TRIALING:
        allowed = state != "expired"
        reason = None if allowed else "trial_expired"
    else:
        reason = f"subscription_{status.value.lower()}"
        allowed = False

    if not allowed:
        logger.info(f"Access denied for tenant {tenant.id}: {reason}")
    return AccessDecision(
        allowed=allowed,
        status=status.value,
        trial_state=state if status == SubscriptionStatus.TRIALING else None,
        days_remaining=days_remaining,
        reason=reason,
    )
