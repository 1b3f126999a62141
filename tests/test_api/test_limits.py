from __future__ import annotations

from uuid import uuid4

from fastapi import status

from vetsaas.core.config import settings
from vetsaas.repositories.usage_repo import UsageRepo


API_PREFIX = f"{settings.API_PREFIX}/v1"


async def test_current_limits_for_trial_tenant(client, provision, auth_header):
    user, provisioned = await provision(plan_key="PROFESIONAL")

    response = await client.get(
        f"{API_PREFIX}/limits/current",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["plan_key"] == "PROFESIONAL"
    assert body["limits"]["max_pets"] == 300
    assert body["limits"]["max_monthly_whatsapp"] == -1
    assert body["usage"]["users"] == 1
    assert body["percentages"]["users"] == 33
    assert body["percentages"]["whatsapp"] == 0
    assert body["warnings"] == []


async def test_usage_near_limit_produces_warning(
    client, provision, auth_header, session_factory
):
    user, provisioned = await provision(plan_key="PROFESIONAL")
    async with session_factory() as session:
        await UsageRepo(session).increment(provisioned.tenant.id, "total_pets", 250)
        await session.commit()

    response = await client.get(
        f"{API_PREFIX}/limits/current",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    body = response.json()
    assert body["usage"]["pets"] == 250
    assert body["percentages"]["pets"] == 83
    assert body["warnings"] == ["pets usage at 83% of plan limit"]


async def test_check_resource_at_limit_is_denied(
    client, provision, auth_header, session_factory
):
    user, provisioned = await provision(plan_key="PROFESIONAL")
    async with session_factory() as session:
        await UsageRepo(session).increment(provisioned.tenant.id, "total_users", 2)
        await session.commit()

    response = await client.get(
        f"{API_PREFIX}/limits/check/users",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.json() == {
        "resource": "users",
        "allowed": False,
        "current": 3,
        "limit": 3,
        "remaining": 0,
    }


async def test_unlimited_resource_is_always_allowed(client, provision, auth_header):
    user, provisioned = await provision(plan_key="EMPRESA")

    response = await client.get(
        f"{API_PREFIX}/limits/check/pets",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    body = response.json()
    assert body["allowed"] is True
    assert body["limit"] == -1
    assert body["remaining"] == -1


async def test_tenant_without_subscription_gets_free_limits(client, make_user, auth_header):
    user = await make_user()

    response = await client.get(
        f"{API_PREFIX}/limits/current",
        headers=auth_header(user.id, uuid4()),
    )

    body = response.json()
    assert body["plan_key"] == "BASICO"
    assert body["limits"]["max_pets"] == 50
    assert body["usage"]["users"] == 0


async def test_unknown_resource(client, provision, auth_header):
    user, provisioned = await provision()

    response = await client.get(
        f"{API_PREFIX}/limits/check/spaceships",
        headers=auth_header(user.id, provisioned.tenant.id),
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_rate_limit(client, provision, auth_header, fake_redis, monkeypatch):
    user, provisioned = await provision()
    monkeypatch.setattr(settings.limits, "rate_limit_rpm", 2)
    headers = auth_header(user.id, provisioned.tenant.id)

    for _ in range(2):
        response = await client.get(f"{API_PREFIX}/limits/current", headers=headers)
        assert response.status_code == status.HTTP_200_OK

    response = await client.get(f"{API_PREFIX}/limits/current", headers=headers)
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json()["message"] == "Rate limit exceeded"
