"""Cache backend implementations."""

from vetsaas.cache.backends.base import CacheBackend
from vetsaas.cache.backends.factory import get_cache_backend

__all__ = ["CacheBackend", "get_cache_backend"]
