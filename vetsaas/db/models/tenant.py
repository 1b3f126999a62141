"""Tenant model definition."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Enum, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetsaas.db.base import Base
from vetsaas.db.types import UTCDateTime, utcnow
from vetsaas.db.models.subscription import SubscriptionStatus

if TYPE_CHECKING:
    from vetsaas.db.models.subscription import TenantSubscription


class TenantStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DISABLED = "DISABLED"


class Tenant(Base):
    """A single clinic's isolated account.

    ``subscription_status`` and ``is_trial_period`` are a read-optimised copy
    of the subscription row; only ``sync_tenant_status`` writes them.
    """

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String(63), unique=True, index=True, nullable=False)
    status: Mapped[TenantStatus] = mapped_column(
        Enum(TenantStatus, name="tenant_status_enum"),
        nullable=False,
        default=TenantStatus.ACTIVE,
    )
    subscription_status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscription_status_enum"),
        nullable=False,
        default=SubscriptionStatus.TRIALING,
    )
    is_trial_period: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    stripe_customer_id: Mapped[Optional[str]] = mapped_column(
        String, unique=True, nullable=True
    )
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, onupdate=utcnow, nullable=True
    )

    subscription: Mapped[Optional["TenantSubscription"]] = relationship(
        "TenantSubscription", back_populates="tenant", uselist=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Tenant {self.slug} status={self.subscription_status.value}>"
