from __future__ import annotations

import datetime as dt

import pytest
from sqlalchemy import delete, func, select

from vetsaas.core.exceptions import ConflictError, NotFoundError, ValidationError
from vetsaas.db.models import (
    Plan,
    Role,
    Tenant,
    TenantSettings,
    TenantSubscription,
    TenantUsageStats,
    User,
    UserRole,
)
from vetsaas.repositories.usage_repo import UsageRepo
from vetsaas.services import provisioning
from vetsaas.services.plan_catalog import PLAN_CATALOG, seed_plans
from vetsaas.services.provisioning import create_tenant_with_defaults, is_slug_available
from vetsaas.services.subscriptions import initialize_subscription


async def _row_counts(session_factory):
    async with session_factory() as session:
        counts = {}
        for model in (Tenant, TenantSettings, TenantUsageStats, TenantSubscription, Role, UserRole):
            counts[model.__tablename__] = await session.scalar(
                select(func.count()).select_from(model)
            )
        return counts


async def test_provisioned_bundle(session_factory, make_user):
    user = await make_user()
    async with session_factory() as session:
        result = await create_tenant_with_defaults(
            session,
            name="  Clínica Patitas ",
            slug="patitas",
            user_id=user.id,
            plan_key="PROFESIONAL",
            billing_interval="monthly",
        )

    assert result.tenant.name == "Clínica Patitas"
    assert result.subscription.current_period_end is result.tenant.trial_ends_at
    assert result.subscription.plan.key == "PROFESIONAL"
    assert result.usage_stats.total_users == 1
    assert result.admin_role.key == "admin"
    assert {role.key for role in result.roles} == {
        "admin",
        "veterinarian",
        "assistant",
        "receptionist",
    }
    assert all(role.is_system for role in result.roles)

    trial_length = result.tenant.trial_ends_at - result.subscription.current_period_start
    assert trial_length == dt.timedelta(days=30)


async def test_failure_mid_sequence_rolls_everything_back(
    session_factory, make_user, monkeypatch
):
    user = await make_user()

    async def _exploding_initializer(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(provisioning, "initialize_subscription", _exploding_initializer)

    async with session_factory() as session:
        with pytest.raises(RuntimeError):
            await create_tenant_with_defaults(
                session,
                name="Half Clinic",
                slug="half-clinic",
                user_id=user.id,
                plan_key="PROFESIONAL",
                billing_interval="monthly",
            )

    assert set((await _row_counts(session_factory)).values()) == {0}
    async with session_factory() as session:
        assert (await session.get(User, user.id)).tenant_id is None


async def test_plan_missing_from_catalog_writes_nothing(session_factory, make_user):
    user = await make_user()
    async with session_factory() as session:
        await session.execute(delete(Plan).where(Plan.key == "EMPRESA"))
        await session.commit()

    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await create_tenant_with_defaults(
                session,
                name="Big Clinic",
                slug="big-clinic",
                user_id=user.id,
                plan_key="EMPRESA",
                billing_interval="annual",
            )

    assert set((await _row_counts(session_factory)).values()) == {0}


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"slug": "ab"},
        {"slug": "UPPER-case"},
        {"slug": "under_score"},
        {"plan_key": "GOLD"},
        {"billing_interval": "weekly"},
    ],
)
async def test_invalid_input_is_rejected_before_writes(session_factory, make_user, overrides):
    user = await make_user()
    arguments = {
        "name": "Valid Clinic",
        "slug": "valid-clinic",
        "user_id": user.id,
        "plan_key": "PROFESIONAL",
        "billing_interval": "monthly",
    }
    arguments.update(overrides)

    async with session_factory() as session:
        with pytest.raises(ValidationError):
            await create_tenant_with_defaults(session, **arguments)

    assert (await _row_counts(session_factory))["tenants"] == 0


async def test_unknown_user_is_not_found(session_factory):
    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await create_tenant_with_defaults(
                session,
                name="Ghost Clinic",
                slug="ghost-clinic",
                user_id="user_missing",
                plan_key="PROFESIONAL",
                billing_interval="monthly",
            )


async def test_duplicate_slug_raises_conflict(session_factory, provision, make_user):
    await provision(slug="taken-slug")
    other = await make_user()

    async with session_factory() as session:
        assert await is_slug_available(session, "taken-slug") is False
        with pytest.raises(ConflictError):
            await create_tenant_with_defaults(
                session,
                name="Other Clinic",
                slug="taken-slug",
                user_id=other.id,
                plan_key="CLINICA",
                billing_interval="monthly",
            )


async def test_initialize_subscription_requires_plan(session_factory):
    tenant = Tenant(
        name="Orphan",
        slug="orphan",
        trial_ends_at=dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=30),
    )
    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await initialize_subscription(
                session,
                tenant=tenant,
                plan=None,
                billing_interval="monthly",
                now=dt.datetime.now(dt.timezone.utc),
            )


async def test_seed_plans_is_idempotent(session_factory):
    async with session_factory() as session:
        await seed_plans(session)
        await session.commit()
        total = await session.scalar(select(func.count()).select_from(Plan))

    assert total == len(PLAN_CATALOG)


async def test_usage_increment(session_factory, provision):
    _, provisioned = await provision()
    tenant_id = provisioned.tenant.id

    async with session_factory() as session:
        repo = UsageRepo(session)
        await repo.increment(tenant_id, "total_pets", 3)
        await repo.increment(tenant_id, "total_users", -1)
        stats = await repo.get_for_tenant(tenant_id)
        assert (stats.total_pets, stats.total_users) == (3, 0)

        with pytest.raises(ValueError):
            await repo.increment(tenant_id, "id", 1)
