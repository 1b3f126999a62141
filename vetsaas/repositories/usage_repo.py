"""Repository helpers for tenant usage counters."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.db.models.usage_stats import TenantUsageStats
from vetsaas.db.types import utcnow


COUNTER_FIELDS = frozenset(
    {
        "total_users",
        "total_pets",
        "total_appointments",
        "total_sales",
        "storage_used_bytes",
        "monthly_whatsapp_sent",
        "cash_registers",
    }
)


class UsageRepo:
    """Reads and increments :class:`TenantUsageStats` counters."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_for_tenant(self, tenant_id: UUID) -> TenantUsageStats | None:
        # populate_existing: counters may have been bumped by increment()
        result = await self.session.execute(
            select(TenantUsageStats)
            .where(TenantUsageStats.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def increment(self, tenant_id: UUID, field: str, amount: int = 1) -> None:
        """Atomically add ``amount`` to one counter (negative values decrement)."""

        if field not in COUNTER_FIELDS:
            raise ValueError(f"Unknown usage counter: {field}")
        column = getattr(TenantUsageStats, field)
        await self.session.execute(
            update(TenantUsageStats)
            .where(TenantUsageStats.tenant_id == tenant_id)
            .values({field: column + amount, "last_updated": utcnow()})
            .execution_options(synchronize_session=False)
        )
