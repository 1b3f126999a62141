"""Repository for subscription lifecycle events."""
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.db.models.subscription_event import SubscriptionEvent


class EventRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        tenant_id: UUID,
        event: str,
        *,
        user_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> SubscriptionEvent:
        entry = SubscriptionEvent(
            tenant_id=tenant_id,
            user_id=user_id,
            event=event,
            details=details or {},
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_for_tenant(self, tenant_id: UUID) -> list[SubscriptionEvent]:
        result = await self.session.execute(
            select(SubscriptionEvent)
            .where(SubscriptionEvent.tenant_id == tenant_id)
            .order_by(SubscriptionEvent.created_at)
        )
        return list(result.scalars().all())
