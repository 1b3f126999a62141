"""Tenant onboarding endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.api.deps import get_db_session
from vetsaas.auth.jwt import require_auth, require_user
from vetsaas.core.exceptions import NotFoundError
from vetsaas.db.models.subscription import TenantSubscription
from vetsaas.db.models.tenant import Tenant
from vetsaas.repositories.role_repo import RoleRepo
from vetsaas.repositories.tenant_repo import TenantRepo
from vetsaas.schemas.tenant import (
    SlugAvailability,
    SubscriptionRead,
    TenantCreate,
    TenantRead,
    TenantWithSubscription,
)
from vetsaas.services.provisioning import create_tenant_with_defaults, is_slug_available
from vetsaas.services.throttle import check_rate_limit


router = APIRouter(prefix="/tenants", tags=["tenants"])


def _serialize(
    tenant: Tenant,
    subscription: Optional[TenantSubscription],
    roles: List[str],
) -> TenantWithSubscription:
    subscription_read = None
    if subscription is not None:
        subscription_read = SubscriptionRead.model_validate(subscription).model_copy(
            update={"plan_key": subscription.plan.key if subscription.plan else None}
        )
    return TenantWithSubscription(
        tenant=TenantRead.model_validate(tenant),
        subscription=subscription_read,
        roles=roles,
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TenantWithSubscription)
async def create_tenant(
    payload: TenantCreate,
    auth=Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    user_id = auth["user_id"]
    await check_rate_limit(f"user:{user_id}")

    provisioned = await create_tenant_with_defaults(
        db,
        name=payload.name,
        slug=payload.slug,
        user_id=user_id,
        plan_key=payload.plan_key,
        billing_interval=payload.billing_interval,
    )
    return _serialize(
        provisioned.tenant,
        provisioned.subscription,
        [role.key for role in provisioned.roles],
    )


@router.get("/check-slug", response_model=SlugAvailability)
async def check_slug(
    slug: str = Query(...),
    auth=Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    return SlugAvailability(slug=slug, available=await is_slug_available(db, slug))


@router.get("/current", response_model=TenantWithSubscription)
async def current_tenant(
    auth=Depends(require_auth), db: AsyncSession = Depends(get_db_session)
):
    tenant = await TenantRepo(db).get_with_subscription(auth["tenant_id"])
    if tenant is None:
        raise NotFoundError("Tenant not found")
    roles = await RoleRepo(db).role_keys_for_user(auth["user_id"], tenant.id)
    return _serialize(tenant, tenant.subscription, roles)
