"""Endpoints exposing current plan limits and usage."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.api.deps import get_db_session
from vetsaas.auth.jwt import require_auth
from vetsaas.schemas.limits import LimitCheckRead, PlanStatusRead
from vetsaas.services.plan_limits import (
    check_limit,
    get_plan_limits,
    get_plan_usage,
    plan_status,
)
from vetsaas.services.throttle import check_rate_limit


router = APIRouter(prefix="/limits", tags=["limits"])


@router.get("/current", response_model=PlanStatusRead)
async def current_limits(
    auth=Depends(require_auth), db: AsyncSession = Depends(get_db_session)
):
    tenant_id = auth["tenant_id"]
    await check_rate_limit(str(tenant_id))

    limits = await get_plan_limits(db, tenant_id)
    usage = await get_plan_usage(db, tenant_id)
    report = plan_status(limits, usage)
    return PlanStatusRead(
        plan_key=limits.plan_key,
        limits=limits.to_dict(),
        usage={
            "pets": usage.pets,
            "users": usage.users,
            "whatsapp": usage.whatsapp,
            "storage_bytes": usage.storage_bytes,
            "cash_registers": usage.cash_registers,
        },
        percentages=report["percentages"],
        warnings=report["warnings"],
    )


@router.get("/check/{resource}", response_model=LimitCheckRead)
async def check_resource(
    resource: str,
    auth=Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
):
    tenant_id = auth["tenant_id"]
    await check_rate_limit(str(tenant_id))

    limits = await get_plan_limits(db, tenant_id)
    usage = await get_plan_usage(db, tenant_id)
    result = check_limit(limits, usage, resource)
    return LimitCheckRead(
        resource=resource,
        allowed=result.allowed,
        current=result.current,
        limit=result.limit,
        remaining=result.remaining,
    )
