"""Subscription model linking tenants to plans."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vetsaas.db.base import Base
from vetsaas.db.types import UTCDateTime, utcnow

if TYPE_CHECKING:
    from vetsaas.db.models.plan import Plan
    from vetsaas.db.models.tenant import Tenant


class SubscriptionStatus(str, enum.Enum):
    TRIALING = "TRIALING"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    UNPAID = "UNPAID"
    CANCELLED = "CANCELLED"
    INCOMPLETE = "INCOMPLETE"


class BillingInterval(str, enum.Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class TenantSubscription(Base):
    """The plan selection for a tenant; owns the subscription status."""

    __tablename__ = "tenant_subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    plan_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("plans.id"), nullable=False)
    status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscription_status_enum"),
        nullable=False,
        default=SubscriptionStatus.TRIALING,
    )
    billing_interval: Mapped[BillingInterval] = mapped_column(
        Enum(BillingInterval, name="billing_interval_enum",
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BillingInterval.MONTHLY,
    )
    current_period_start: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, onupdate=utcnow, nullable=True
    )

    plan: Mapped["Plan"] = relationship("Plan")
    tenant: Mapped["Tenant"] = relationship(
        "Tenant", back_populates="subscription"
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<TenantSubscription tenant={self.tenant_id} status={self.status.value}>"
