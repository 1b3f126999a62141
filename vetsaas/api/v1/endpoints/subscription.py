"""Endpoints for a tenant's subscription: plan changes and access checks."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.api.deps import get_db_session
from vetsaas.auth.jwt import require_auth
from vetsaas.core.exceptions import NotFoundError
from vetsaas.repositories.tenant_repo import TenantRepo
from vetsaas.repositories.user_repo import UserRepo
from vetsaas.schemas.subscription import UpgradeRequest
from vetsaas.services.subscriptions import check_subscription_access
from vetsaas.services.throttle import (
    check_rate_limit,
    ensure_idempotent,
    release_idempotency,
)
from vetsaas.services.upgrades import change_plan, upgrade_options, validate_downgrade


router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.post("/upgrade")
async def upgrade_subscription(
    payload: UpgradeRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
):
    tenant_id = auth["tenant_id"]
    await check_rate_limit(str(tenant_id))
    await ensure_idempotent(str(tenant_id), idempotency_key)

    try:
        tenant = await TenantRepo(db).get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        user = await UserRepo(db).get(auth["user_id"])

        result = await change_plan(
            db,
            tenant=tenant,
            user_id=auth["user_id"],
            target_plan=payload.target_plan,
            billing_interval=payload.billing_interval,
            from_trial=payload.from_trial,
            email=user.email if user else None,
        )
    except Exception:
        await release_idempotency(str(tenant_id), idempotency_key)
        raise
    return result.to_dict()


@router.get("/upgrade")
async def get_upgrade_options(
    auth=Depends(require_auth), db: AsyncSession = Depends(get_db_session)
):
    tenant = await TenantRepo(db).get(auth["tenant_id"])
    if tenant is None:
        raise NotFoundError("Tenant not found")
    return await upgrade_options(db, tenant)


@router.get("/access")
async def get_subscription_access(
    auth=Depends(require_auth), db: AsyncSession = Depends(get_db_session)
):
    tenant = await TenantRepo(db).get(auth["tenant_id"])
    if tenant is None:
        raise NotFoundError("Tenant not found")
    return check_subscription_access(tenant).to_dict()


@router.get("/validate-downgrade")
async def get_downgrade_validation(
    target_plan: str = Query(..., min_length=1),
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
):
    tenant = await TenantRepo(db).get(auth["tenant_id"])
    if tenant is None:
        raise NotFoundError("Tenant not found")
    result = await validate_downgrade(db, tenant, target_plan)
    return result.to_dict()
