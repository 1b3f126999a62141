"""Repository utilities for subscription plans."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.db.models.plan import Plan


class PlanRepo:
    """Read-only data-access helpers for :class:`Plan`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_key(self, key: str) -> Plan | None:
        result = await self.session.execute(select(Plan).where(Plan.key == key))
        return result.scalar_one_or_none()

    async def list_active(self) -> list[Plan]:
        result = await self.session.execute(
            select(Plan).where(Plan.is_active.is_(True)).order_by(Plan.tier)
        )
        return list(result.scalars().all())
