"""Tenant provisioning: a tenant and all of its companion rows in one unit of work."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.core.exceptions import ConflictError, NotFoundError, ValidationError
from vetsaas.db.models.role import Role, UserRole
from vetsaas.db.models.subscription import SubscriptionStatus, TenantSubscription
from vetsaas.db.models.tenant import Tenant, TenantStatus
from vetsaas.db.models.tenant_settings import TenantSettings
from vetsaas.db.models.usage_stats import TenantUsageStats
from vetsaas.db.types import utcnow
from vetsaas.repositories.event_repo import EventRepo
from vetsaas.repositories.tenant_repo import TenantRepo
from vetsaas.repositories.user_repo import UserRepo
from vetsaas.services.plan_catalog import PLAN_CATALOG, get_plan_or_404
from vetsaas.services.subscriptions import (
    TRIAL_DAYS,
    initialize_subscription,
    parse_billing_interval,
)


logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9-]+$")
SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 63

ADMIN_ROLE = "admin"
DEFAULT_ROLES = (
    (ADMIN_ROLE, "Administrador"),
    ("veterinarian", "Veterinario"),
    ("assistant", "Asistente"),
    ("receptionist", "Recepcionista"),
)


@dataclass
class ProvisionedTenant:
    tenant: Tenant
    subscription: TenantSubscription
    settings: TenantSettings
    usage_stats: TenantUsageStats
    roles: List[Role] = field(default_factory=list)

    @property
    def admin_role(self) -> Role:
        return next(role for role in self.roles if role.key == ADMIN_ROLE)


def validate_slug(slug: str) -> str:
    slug = (slug or "").strip()
    if not SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH:
        raise ValidationError(
            f"Slug must be between {SLUG_MIN_LENGTH} and {SLUG_MAX_LENGTH} characters"
        )
    if not SLUG_RE.match(slug):
        raise ValidationError(
            "Slug may only contain lowercase letters, numbers and hyphens"
        )
    return slug


async def is_slug_available(session: AsyncSession, slug: str) -> bool:
    return not await TenantRepo(session).slug_exists(validate_slug(slug))


async def create_tenant_with_defaults(
    session: AsyncSession,
    *,
    name: str,
    slug: str,
    user_id: str,
    plan_key: str,
    billing_interval: str,
) -> ProvisionedTenant:
    """Create a trialing tenant with settings, usage stats, roles and subscription.

    Every check runs before the first write. The writes share one transaction
    which is committed here; any failure rolls all of them back and re-raises.
    """

    name = (name or "").strip()
    if not name:
        raise ValidationError("Clinic name is required")
    slug = validate_slug(slug)
    interval = parse_billing_interval(billing_interval)
    if plan_key not in PLAN_CATALOG:
        raise ValidationError(f"Invalid plan key: {plan_key}")

    user = await UserRepo(session).get(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.tenant_id is not None:
        raise ConflictError("User already belongs to a clinic")

    if await TenantRepo(session).slug_exists(slug):
        raise ConflictError(f"Slug '{slug}' is already in use")

    plan = await get_plan_or_404(session, plan_key)

    now = utcnow()
    try:
        tenant = Tenant(
            name=name,
            slug=slug,
            status=TenantStatus.ACTIVE,
            subscription_status=SubscriptionStatus.TRIALING,
            is_trial_period=True,
            trial_ends_at=now + timedelta(days=TRIAL_DAYS),
        )
        session.add(tenant)
        await session.flush()

        tenant_settings = TenantSettings(tenant_id=tenant.id)
        usage_stats = TenantUsageStats(tenant_id=tenant.id, total_users=1)
        session.add_all([tenant_settings, usage_stats])

        roles = [
            Role(tenant_id=tenant.id, key=key, name=label, is_system=True)
            for key, label in DEFAULT_ROLES
        ]
        session.add_all(roles)
        await session.flush()

        admin_role = next(role for role in roles if role.key == ADMIN_ROLE)
        session.add(UserRole(user_id=user.id, role_id=admin_role.id))
        user.tenant_id = tenant.id

        subscription = await initialize_subscription(
            session,
            tenant=tenant,
            plan=plan,
            billing_interval=interval,
            now=now,
        )
        await EventRepo(session).record(
            tenant.id,
            "trial_started",
            user_id=user.id,
            details={
                "plan_key": plan.key,
                "billing_interval": interval.value,
                "trial_ends_at": tenant.trial_ends_at.isoformat(),
            },
        )
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning(f"Provisioning '{slug}' hit a constraint violation: {exc.orig}")
        raise ConflictError(f"Slug '{slug}' is already in use") from exc
    except Exception:
        await session.rollback()
        logger.exception(f"Provisioning '{slug}' failed; rolled back")
        raise

    logger.info(
        f"Provisioned tenant {tenant.id} ({slug}) for user {user_id} on plan {plan.key}"
    )
    return ProvisionedTenant(
        tenant=tenant,
        subscription=subscription,
        settings=tenant_settings,
        usage_stats=usage_stats,
        roles=roles,
    )
