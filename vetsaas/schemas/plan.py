"""Plan catalog response schemas."""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PlanRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    key: str
    name: str
    description: Optional[str] = None
    tier: int
    monthly_price: Decimal
    annual_price: Decimal
    max_pets: int
    max_users: int
    max_storage_gb: int
    max_cash_registers: int
    max_monthly_whatsapp: int
    features: Dict[str, bool]
    is_recommended: bool
