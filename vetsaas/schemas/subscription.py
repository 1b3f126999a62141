"""Plan change request schema."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UpgradeRequest(BaseModel):
    target_plan: Literal["PROFESIONAL", "CLINICA", "EMPRESA"]
    billing_interval: Literal["monthly", "annual"] = "monthly"
    from_trial: bool = False
