"""Tenant onboarding request/response schemas."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vetsaas.db.models.subscription import BillingInterval, SubscriptionStatus
from vetsaas.db.models.tenant import TenantStatus


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    # format checks happen in the provisioning service so they map to 400s
    slug: str
    plan_key: str = "PROFESIONAL"
    billing_interval: Literal["monthly", "yearly", "annual"] = "monthly"


class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plan_id: UUID
    plan_key: Optional[str] = None
    status: SubscriptionStatus
    billing_interval: BillingInterval
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    status: TenantStatus
    subscription_status: SubscriptionStatus
    is_trial_period: bool
    trial_ends_at: Optional[datetime] = None
    created_at: datetime


class TenantWithSubscription(BaseModel):
    tenant: TenantRead
    subscription: Optional[SubscriptionRead] = None
    roles: List[str] = Field(default_factory=list)


class SlugAvailability(BaseModel):
    slug: str
    available: bool
