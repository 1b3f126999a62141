"""Rate limiting and idempotency helpers."""
from __future__ import annotations

import time
from typing import Optional

import redis.asyncio as redis
from fastapi import HTTPException, status

from vetsaas.core.config import settings

_redis_client: redis.Redis | None = None


async def _get_client() -> redis.Redis:
    """Return a cached Redis client instance."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(str(settings.REDIS_URI), decode_responses=True)
    return _redis_client


async def check_rate_limit(scope: str) -> None:
    """Enforce a fixed one-minute window per tenant (or user, before onboarding)."""

    client = await _get_client()
    minute_window = int(time.time() // 60)
    key = f"rl:{scope}:{minute_window}"
    current = await client.incr(key)
    if current == 1:
        await client.expire(key, 60)
    if current > settings.limits.rate_limit_rpm:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
        )


async def ensure_idempotent(scope: str, key: Optional[str]) -> None:
    """Reject a repeated POST that reuses an ``Idempotency-Key``."""

    if not key:
        return
    client = await _get_client()
    redis_key = f"idemp:{scope}:{key}"
    was_set = await client.set(
        redis_key, "1", ex=settings.limits.idempotency_ttl_seconds, nx=True
    )
    if not was_set:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Duplicate request (idempotency)",
        )


async def release_idempotency(scope: str, key: Optional[str]) -> None:
    """Forget an ``Idempotency-Key`` so a failed request can be retried."""

    if not key:
        return
    client = await _get_client()
    await client.delete(f"idemp:{scope}:{key}")
