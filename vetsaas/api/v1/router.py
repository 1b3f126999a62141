"""Aggregate router for API v1."""
from fastapi import APIRouter

from vetsaas.api.v1.endpoints import limits, plans, subscription, tenants


api_router = APIRouter()
api_router.include_router(plans.router)
api_router.include_router(tenants.router)
api_router.include_router(limits.router)
api_router.include_router(subscription.router)
