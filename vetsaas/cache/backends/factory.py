"""Select the cache backend configured in settings."""
from __future__ import annotations

import logging
from typing import Optional

from vetsaas.cache.backends.base import CacheBackend
from vetsaas.cache.backends.memory import MemoryBackend
from vetsaas.cache.backends.redis import RedisBackend
from vetsaas.core.config import settings


logger = logging.getLogger(__name__)

_backend: Optional[CacheBackend] = None


def get_cache_backend() -> CacheBackend:
    """Return the process-wide cache backend, creating it on first use."""

    global _backend
    if _backend is None:
        if settings.cache.backend_type == "memory":
            _backend = MemoryBackend()
        else:
            _backend = RedisBackend(str(settings.REDIS_URI))
        logger.info(f"Using {settings.cache.backend_type} cache backend")
    return _backend


async def close_cache_backend() -> None:
    global _backend
    if _backend is not None:
        await _backend.close()
        _backend = None
