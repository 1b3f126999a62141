"""Public plan catalog endpoint."""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.api.deps import get_db_session
from vetsaas.cache.decorators import cached
from vetsaas.repositories.plan_repo import PlanRepo
from vetsaas.schemas.plan import PlanRead


router = APIRouter(prefix="/plans", tags=["plans"])


@cached(key_prefix="plans")
async def _active_plans(db: AsyncSession) -> List[Dict[str, Any]]:
    plans = await PlanRepo(db).list_active()
    return [PlanRead.model_validate(plan).model_dump(mode="json") for plan in plans]


@router.get("")
async def list_plans(db: AsyncSession = Depends(get_db_session)):
    return {"plans": await _active_plans(db)}
