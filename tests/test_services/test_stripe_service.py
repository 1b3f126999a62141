from __future__ import annotations

import pytest
import stripe

from vetsaas.core.config import settings
from vetsaas.core.exceptions import UpstreamError
from vetsaas.services import stripe_service


@pytest.fixture(autouse=True)
def stripe_key(monkeypatch):
    monkeypatch.setattr(settings.billing, "stripe_secret_key", "sk_test_123")


@pytest.fixture
def modify_calls(monkeypatch):
    calls = []

    def fail_retrieve(*args, **kwargs):
        raise AssertionError("subscription should not be looked up again")

    def modify(subscription_id, **kwargs):
        calls.append((subscription_id, kwargs))
        return {"id": subscription_id, "status": "active", "current_period_end": 1798761600}

    monkeypatch.setattr(stripe.Subscription, "retrieve", fail_retrieve)
    monkeypatch.setattr(stripe.Subscription, "modify", modify)
    return calls


async def test_update_price_uses_given_item(modify_calls):
    result = await stripe_service.update_subscription_price("sub_123", "si_1", "price_new")

    assert result == {"id": "sub_123", "status": "active", "current_period_end": 1798761600}
    subscription_id, kwargs = modify_calls[0]
    assert subscription_id == "sub_123"
    assert kwargs["items"] == [{"id": "si_1", "price": "price_new"}]
    assert kwargs["proration_behavior"] == "always_invoice"


async def test_update_price_reads_period_end_from_items(monkeypatch):
    def modify(subscription_id, **kwargs):
        return {
            "id": subscription_id,
            "status": "trialing",
            "items": {"data": [{"id": "si_1", "current_period_end": 1800000000}]},
        }

    monkeypatch.setattr(stripe.Subscription, "modify", modify)

    result = await stripe_service.update_subscription_price("sub_123", "si_1", "price_new")

    assert result["status"] == "trialing"
    assert result["current_period_end"] == 1800000000


async def test_provider_error_becomes_upstream_error(monkeypatch):
    def modify(subscription_id, **kwargs):
        raise stripe.APIConnectionError("connection reset")

    monkeypatch.setattr(stripe.Subscription, "modify", modify)

    with pytest.raises(UpstreamError):
        await stripe_service.update_subscription_price("sub_123", "si_1", "price_new")
