"""Repository for tenant roles and user-role links."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.db.models.role import Role, UserRole


class RoleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_tenant(self, tenant_id: UUID) -> list[Role]:
        result = await self.session.execute(
            select(Role).where(Role.tenant_id == tenant_id).order_by(Role.key)
        )
        return list(result.scalars().all())

    async def role_keys_for_user(self, user_id: str, tenant_id: UUID) -> list[str]:
        result = await self.session.execute(
            select(Role.key)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id, Role.tenant_id == tenant_id)
        )
        return list(result.scalars().all())
