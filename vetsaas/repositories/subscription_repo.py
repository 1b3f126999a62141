"""Repository utilities for tenant subscriptions."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vetsaas.db.models.subscription import TenantSubscription


class SubscriptionRepo:
    """Data-access helpers for :class:`TenantSubscription`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_with_plan(self, tenant_id: UUID) -> TenantSubscription | None:
        result = await self.session.execute(
            select(TenantSubscription)
            .options(selectinload(TenantSubscription.plan))
            .where(TenantSubscription.tenant_id == tenant_id)
        )
        return result.scalars().first()

    async def add(self, subscription: TenantSubscription) -> TenantSubscription:
        self.session.add(subscription)
        await self.session.flush()
        return subscription
