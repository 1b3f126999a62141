from __future__ import annotations

import datetime as dt

from fastapi import status
from sqlalchemy import select

from vetsaas.core.config import settings
from vetsaas.db.models import Tenant, TenantUsageStats
from vetsaas.db.models.subscription import SubscriptionStatus
from vetsaas.services.plan_limits import BYTES_PER_GB


API_PREFIX = f"{settings.API_PREFIX}/v1"


async def _set_usage(session_factory, tenant_id, **counters) -> None:
    async with session_factory() as session:
        stats = (
            await session.execute(
                select(TenantUsageStats).where(TenantUsageStats.tenant_id == tenant_id)
            )
        ).scalar_one()
        for name, value in counters.items():
            setattr(stats, name, value)
        await session.commit()


async def test_trial_tenant_has_access(client, provision, auth_header):
    user, provisioned = await provision()

    response = await client.get(
        f"{API_PREFIX}/subscription/access",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["allowed"] is True
    assert body["status"] == "TRIALING"
    assert body["trial_state"] == "active"
    assert body["days_remaining"] == 30
    assert body["reason"] is None


async def test_expired_trial_is_denied(client, provision, auth_header, session_factory):
    user, provisioned = await provision()
    async with session_factory() as session:
        tenant = await session.get(Tenant, provisioned.tenant.id)
        tenant.trial_ends_at = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=2)
        await session.commit()

    response = await client.get(
        f"{API_PREFIX}/subscription/access",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    body = response.json()
    assert body["allowed"] is False
    assert body["status"] == "TRIALING"
    assert body["trial_state"] == "expired"
    assert body["reason"] == "trial_expired"
    assert body["days_remaining"] < 0


async def test_cancelled_subscription_is_denied(
    client, provision, auth_header, session_factory
):
    user, provisioned = await provision()
    async with session_factory() as session:
        tenant = await session.get(Tenant, provisioned.tenant.id)
        tenant.subscription_status = SubscriptionStatus.CANCELLED
        tenant.is_trial_period = False
        await session.commit()

    response = await client.get(
        f"{API_PREFIX}/subscription/access",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    body = response.json()
    assert body["allowed"] is False
    assert body["reason"] == "subscription_cancelled"


async def test_downgrade_validation_lists_blockers(
    client, provision, auth_header, session_factory
):
    user, provisioned = await provision(plan_key="EMPRESA")
    await _set_usage(
        session_factory,
        provisioned.tenant.id,
        total_pets=400,
        total_users=5,
        storage_used_bytes=6 * BYTES_PER_GB,
        cash_registers=1,
    )

    response = await client.get(
        f"{API_PREFIX}/subscription/validate-downgrade",
        params={"target_plan": "profesional"},
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["can_downgrade"] is False
    assert body["current_plan"] == "EMPRESA"
    assert body["target_plan"]["key"] == "PROFESIONAL"
    assert body["current_usage"]["storage"] == 6.0

    blockers = {blocker["resource"]: blocker for blocker in body["blockers"]}
    assert set(blockers) == {"pets", "users", "storage"}
    assert blockers["pets"]["new_limit"] == 300
    assert blockers["pets"]["excess"] == 100
    assert "100" in blockers["pets"]["suggestion"]
    assert blockers["users"]["excess"] == 2
    assert blockers["storage"]["new_limit"] == 5

    lost = {warning["feature"] for warning in body["warnings"]}
    assert lost == {"advanced_reports", "sms_reminders", "multiple_cash_registers"}
    assert all(warning["type"] == "feature_loss" for warning in body["warnings"])


async def test_downgrade_validation_passes_when_usage_fits(client, provision, auth_header):
    user, provisioned = await provision(plan_key="CLINICA")

    response = await client.get(
        f"{API_PREFIX}/subscription/validate-downgrade",
        params={"target_plan": "PROFESIONAL"},
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    body = response.json()
    assert body["can_downgrade"] is True
    assert body["blockers"] == []


async def test_unlimited_target_never_blocks(
    client, provision, auth_header, session_factory
):
    user, provisioned = await provision(plan_key="CLINICA")
    await _set_usage(session_factory, provisioned.tenant.id, total_pets=50_000)

    response = await client.get(
        f"{API_PREFIX}/subscription/validate-downgrade",
        params={"target_plan": "EMPRESA"},
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.json()["can_downgrade"] is True


async def test_downgrade_validation_unknown_plan(client, provision, auth_header):
    user, provisioned = await provision()

    response = await client.get(
        f"{API_PREFIX}/subscription/validate-downgrade",
        params={"target_plan": "GOLD"},
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "not_found"
