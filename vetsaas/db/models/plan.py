"""Billing plan model definition."""
from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vetsaas.db.base import Base
from vetsaas.db.types import JSONBCompatible


class Plan(Base):
    """A subscription tier from the plan catalog.

    Limits use ``-1`` to mean unlimited.
    """

    __tablename__ = "plans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    annual_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_pets: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    max_users: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_storage_gb: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_cash_registers: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_monthly_whatsapp: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    features: Mapped[dict] = mapped_column(JSONBCompatible, nullable=False, default=dict)
    is_recommended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Plan {self.key} tier={self.tier}>"
