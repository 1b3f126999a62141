"""Usage counters maintained per tenant."""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Integer, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from vetsaas.db.base import Base
from vetsaas.db.types import UTCDateTime, utcnow


class TenantUsageStats(Base):
    """Running counters incremented by feature code (pets, invites, ...)."""

    __tablename__ = "tenant_usage_stats"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_users: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_pets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_appointments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    storage_used_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    monthly_whatsapp_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cash_registers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
