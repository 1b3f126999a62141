"""Thin async wrapper over the Stripe SDK.

The SDK is synchronous, so every call runs in the threadpool. Provider
failures surface as :class:`UpstreamError`; a missing subscription on the
provider side maps to :class:`NotFoundError`.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from vetsaas.core.config import settings
from vetsaas.core.exceptions import NotFoundError, UpstreamError, ValidationError
from vetsaas.db.models.tenant import Tenant


logger = logging.getLogger(__name__)


def _configure() -> None:
    if not settings.billing.stripe_secret_key:
        raise RuntimeError("BILLING__STRIPE_SECRET_KEY is not configured")
    stripe.api_key = settings.billing.stripe_secret_key


async def _call(operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    _configure()
    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except stripe.InvalidRequestError as exc:
        if "No such subscription" in str(exc):
            raise NotFoundError("Subscription not found at payment provider") from exc
        logger.error(f"Stripe {operation} rejected: {exc}")
        raise UpstreamError(f"Payment provider rejected {operation}") from exc
    except stripe.StripeError as exc:
        logger.error(f"Stripe {operation} failed: {exc}")
        raise UpstreamError(f"Payment provider error during {operation}") from exc


def get_price_id(plan_key: str, interval: str) -> str:
    prices = settings.billing.stripe_prices.get(plan_key)
    if not prices or interval not in prices:
        raise ValidationError(f"No price configured for {plan_key} ({interval})")
    return prices[interval]


async def get_or_create_customer(tenant: Tenant, email: Optional[str]) -> str:
    """Return the tenant's Stripe customer id, creating the customer if needed.

    The caller persists ``tenant.stripe_customer_id``.
    """

    if tenant.stripe_customer_id:
        return tenant.stripe_customer_id

    customer = await _call(
        "customer creation",
        stripe.Customer.create,
        email=email,
        name=tenant.name,
        metadata={"tenantId": str(tenant.id), "slug": tenant.slug},
    )
    tenant.stripe_customer_id = customer["id"]
    logger.info(f"Created Stripe customer {customer['id']} for tenant {tenant.id}")
    return customer["id"]


async def create_checkout_session(
    *,
    customer_id: str,
    price_id: str,
    tenant_id: str,
    plan_key: str,
    user_id: str,
    billing_interval: str,
) -> Dict[str, Any]:
    metadata = {
        "tenantId": tenant_id,
        "planKey": plan_key,
        "userId": user_id,
        "billingInterval": billing_interval,
    }
    session = await _call(
        "checkout session creation",
        stripe.checkout.Session.create,
        customer=customer_id,
        mode="subscription",
        payment_method_types=["card"],
        line_items=[{"price": price_id, "quantity": 1}],
        subscription_data={
            "trial_period_days": settings.billing.trial_days,
            "metadata": metadata,
        },
        metadata=metadata,
        success_url=settings.billing.checkout_success_url,
        cancel_url=settings.billing.checkout_cancel_url,
        locale=settings.billing.checkout_locale,
        allow_promotion_codes=True,
        billing_address_collection="required",
    )
    logger.info(f"Created checkout session {session['id']} for tenant {tenant_id}")
    return {"id": session["id"], "url": session["url"]}


async def retrieve_subscription(subscription_id: str) -> Dict[str, Any]:
    subscription = await _call(
        "subscription lookup", stripe.Subscription.retrieve, subscription_id
    )
    return {
        "id": subscription["id"],
        "status": subscription["status"],
        "item_id": subscription["items"]["data"][0]["id"],
        "customer": subscription["customer"],
    }


async def update_subscription_price(
    subscription_id: str, item_id: str, price_id: str
) -> Dict[str, Any]:
    """Swap the price on ``item_id``, invoicing the proration immediately."""

    updated = await _call(
        "subscription update",
        stripe.Subscription.modify,
        subscription_id,
        items=[{"id": item_id, "price": price_id}],
        proration_behavior="always_invoice",
    )
    logger.info(f"Moved Stripe subscription {subscription_id} to price {price_id}")
    return {
        "id": updated["id"],
        "status": updated["status"],
        "current_period_end": _current_period_end(updated),
    }


def _current_period_end(subscription: Any) -> Optional[int]:
    # newer API versions report the period on each item instead
    period_end = subscription.get("current_period_end")
    if period_end is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            period_end = items[0].get("current_period_end")
    return period_end


async def preview_upcoming_invoice(customer_id: str, subscription_id: str) -> Dict[str, Any]:
    invoice = await _call(
        "invoice preview",
        stripe.Invoice.create_preview,
        customer=customer_id,
        subscription=subscription_id,
    )
    return {
        "amount_due": invoice["amount_due"],
        "currency": invoice["currency"],
        "next_payment_attempt": invoice.get("next_payment_attempt"),
    }
