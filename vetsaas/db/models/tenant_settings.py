"""Per-tenant configuration defaults."""
from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vetsaas.db.base import Base


class TenantSettings(Base):
    __tablename__ = "tenant_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    timezone: Mapped[str] = mapped_column(String, nullable=False, default="America/Mexico_City")
    date_format: Mapped[str] = mapped_column(String, nullable=False, default="DD/MM/YYYY")
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    currency_symbol: Mapped[str] = mapped_column(String(4), nullable=False, default="$")
    tax_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4), nullable=False, default=Decimal("0.16")
    )
    appointment_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    enable_email_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enable_sms_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
