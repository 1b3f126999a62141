"""Plan catalog: seed definitions, tier ranking and catalog lookups."""
from __future__ import annotations

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.core.exceptions import NotFoundError, ValidationError
from vetsaas.db.models.plan import Plan
from vetsaas.repositories.plan_repo import PlanRepo


logger = logging.getLogger(__name__)

UNLIMITED = -1

PLAN_CATALOG: Mapping[str, Mapping[str, Any]] = MappingProxyType(
    {
        "BASICO": MappingProxyType(
            {
                "name": "Básico",
                "description": "Free tier for trying the platform.",
                "tier": 0,
                "monthly_price": Decimal("0"),
                "annual_price": Decimal("0"),
                "max_pets": 50,
                "max_users": 1,
                "max_storage_gb": 1,
                "max_cash_registers": 1,
                "max_monthly_whatsapp": 50,
                "features": {
                    "automations": False,
                    "advanced_reports": False,
                    "multi_doctor": False,
                    "sms_reminders": False,
                    "multiple_cash_registers": False,
                },
                "is_recommended": False,
            }
        ),
        "PROFESIONAL": MappingProxyType(
            {
                "name": "Profesional",
                "description": "Independent veterinarians and small practices.",
                "tier": 1,
                "monthly_price": Decimal("599"),
                "annual_price": Decimal("479"),
                "max_pets": 300,
                "max_users": 3,
                "max_storage_gb": 5,
                "max_cash_registers": 1,
                "max_monthly_whatsapp": UNLIMITED,
                "features": {
                    "automations": True,
                    "advanced_reports": False,
                    "multi_doctor": True,
                    "sms_reminders": False,
                    "multiple_cash_registers": False,
                },
                "is_recommended": False,
            }
        ),
        "CLINICA": MappingProxyType(
            {
                "name": "Clínica",
                "description": "Established clinics with several doctors.",
                "tier": 2,
                "monthly_price": Decimal("999"),
                "annual_price": Decimal("799"),
                "max_pets": 1000,
                "max_users": 8,
                "max_storage_gb": 20,
                "max_cash_registers": 3,
                "max_monthly_whatsapp": UNLIMITED,
                "features": {
                    "automations": True,
                    "advanced_reports": True,
                    "multi_doctor": True,
                    "sms_reminders": True,
                    "multiple_cash_registers": True,
                },
                "is_recommended": True,
            }
        ),
        "EMPRESA": MappingProxyType(
            {
                "name": "Empresa",
                "description": "Hospitals and multi-site groups.",
                "tier": 3,
                "monthly_price": Decimal("1799"),
                "annual_price": Decimal("1439"),
                "max_pets": UNLIMITED,
                "max_users": 20,
                "max_storage_gb": 100,
                "max_cash_registers": 10,
                "max_monthly_whatsapp": UNLIMITED,
                "features": {
                    "automations": True,
                    "advanced_reports": True,
                    "multi_doctor": True,
                    "sms_reminders": True,
                    "multiple_cash_registers": True,
                },
                "is_recommended": False,
            }
        ),
    }
)

PAID_PLAN_KEYS = ("PROFESIONAL", "CLINICA", "EMPRESA")


def plan_tier(key: str) -> int:
    """Return the rank of a plan key (BASICO=0 ... EMPRESA=3)."""

    definition = PLAN_CATALOG.get(key)
    if definition is None:
        raise ValidationError(f"Unknown plan key: {key}")
    return definition["tier"]


def plan_price(plan: Plan, interval: str) -> Decimal:
    """Monthly-equivalent price for ``interval`` (annual plans bill 12x this)."""

    return plan.annual_price if interval == "annual" else plan.monthly_price


async def get_plan_or_404(session: AsyncSession, key: str) -> Plan:
    plan = await PlanRepo(session).get_by_key(key)
    if plan is None or not plan.is_active:
        raise NotFoundError(f"Plan not found: {key}")
    return plan


async def seed_plans(session: AsyncSession) -> Dict[str, Plan]:
    """Insert or refresh every catalog entry; safe to run repeatedly.

    The caller owns the transaction.
    """

    repo = PlanRepo(session)
    plans: Dict[str, Plan] = {}
    for key, definition in PLAN_CATALOG.items():
        plan = await repo.get_by_key(key)
        if plan is None:
            plan = Plan(key=key)
            session.add(plan)
        for field, value in definition.items():
            setattr(plan, field, dict(value) if field == "features" else value)
        plan.is_active = True
        plans[key] = plan
    await session.flush()
    logger.info(f"Seeded {len(plans)} plans")
    return plans
