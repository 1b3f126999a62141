from __future__ import annotations

import datetime as dt

import pytest

from vetsaas.db.models import SubscriptionStatus, Tenant, TenantStatus
from vetsaas.services.subscriptions import check_subscription_access, trial_state


NOW = dt.datetime(2026, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _tenant(
    subscription_status: SubscriptionStatus = SubscriptionStatus.TRIALING,
    *,
    trial_days: float | None = 30,
    tenant_status: TenantStatus = TenantStatus.ACTIVE,
) -> Tenant:
    return Tenant(
        name="Test Clinic",
        slug="test-clinic",
        status=tenant_status,
        subscription_status=subscription_status,
        is_trial_period=subscription_status == SubscriptionStatus.TRIALING,
        trial_ends_at=None if trial_days is None else NOW + dt.timedelta(days=trial_days),
    )


@pytest.mark.parametrize(
    "trial_days,expected",
    [
        (30, ("active", 30)),
        (3, ("ending_soon", 3)),
        (0.25, ("ending_soon", 1)),
        (-0.25, ("expired", -1)),
        (-5, ("expired", -5)),
    ],
)
def test_trial_state(trial_days, expected):
    assert trial_state(_tenant(trial_days=trial_days), NOW) == expected


def test_trial_state_without_end_date_is_converted():
    assert trial_state(_tenant(trial_days=None), NOW) == ("converted", None)
    assert trial_state(_tenant(SubscriptionStatus.ACTIVE), NOW) == ("converted", None)


def test_active_subscription_is_allowed():
    decision = check_subscription_access(_tenant(SubscriptionStatus.ACTIVE), NOW)
    assert decision.allowed is True
    assert decision.trial_state is None
    assert decision.reason is None


def test_valid_trial_is_allowed():
    decision = check_subscription_access(_tenant(trial_days=2), NOW)
    assert decision.allowed is True
    assert decision.trial_state == "ending_soon"
    assert decision.days_remaining == 2


def test_expired_trial_is_denied_while_still_trialing():
    decision = check_subscription_access(_tenant(trial_days=-1), NOW)
    assert decision.allowed is False
    assert decision.status == "TRIALING"
    assert decision.reason == "trial_expired"


@pytest.mark.parametrize(
    "subscription_status,reason",
    [
        (SubscriptionStatus.CANCELLED, "subscription_cancelled"),
        (SubscriptionStatus.PAST_DUE, "subscription_past_due"),
        (SubscriptionStatus.UNPAID, "subscription_unpaid"),
        (SubscriptionStatus.INCOMPLETE, "subscription_incomplete"),
    ],
)
def test_lapsed_subscriptions_are_denied(subscription_status, reason):
    decision = check_subscription_access(_tenant(subscription_status), NOW)
    assert decision.allowed is False
    assert decision.reason == reason


def test_suspended_tenant_is_denied():
    decision = check_subscription_access(
        _tenant(SubscriptionStatus.ACTIVE, tenant_status=TenantStatus.SUSPENDED), NOW
    )
    assert decision.allowed is False
    assert decision.reason == "tenant_suspended"
