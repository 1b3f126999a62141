"""Repository for tenant records."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vetsaas.db.models.subscription import TenantSubscription
from vetsaas.db.models.tenant import Tenant


class TenantRepo:
    """Data-access helpers for :class:`Tenant`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tenant_id: UUID) -> Tenant | None:
        result = await self.session.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        result = await self.session.execute(
            select(Tenant.id).where(Tenant.slug == slug).limit(1)
        )
        return result.first() is not None

    async def get_with_subscription(self, tenant_id: UUID) -> Tenant | None:
        """Load the tenant together with its subscription and plan."""

        result = await self.session.execute(
            select(Tenant)
            .options(
                selectinload(Tenant.subscription).selectinload(TenantSubscription.plan)
            )
            .where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()
