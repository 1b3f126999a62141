"""Plan limit and usage response schemas."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel


class LimitCheckRead(BaseModel):
    resource: str
    allowed: bool
    current: int
    limit: int
    remaining: int


class PlanStatusRead(BaseModel):
    plan_key: str
    limits: Dict[str, object]
    usage: Dict[str, int]
    percentages: Dict[str, int]
    warnings: List[str]
