"""
Caching decorators for API response caching
"""
import functools
import hashlib
import inspect
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from vetsaas.cache.backends.base import CacheBackend
from vetsaas.cache.backends.factory import get_cache_backend
from vetsaas.core.config import settings


logger = logging.getLogger(__name__)


def _get_cache_key(prefix: str, func_name: str, args_dict: Dict[str, Any]) -> str:
    """
    Build a cache key from the function name and a hash of its arguments
    """
    args_str = json.dumps(args_dict, sort_keys=True, default=str)
    args_hash = hashlib.md5(args_str.encode()).hexdigest()
    return f"{prefix}:{func_name}:{args_hash}"


def cached(
    ttl: Optional[int] = None,
    key_prefix: str = "cache",
    key_builder: Optional[Callable[..., str]] = None,
    exclude_keys: Tuple[str, ...] = ("self", "cls", "request", "db", "session", "cache"),
):
    """
    Cache the JSON-encoded return value of an async function

    Args:
        ttl: Time to live in seconds. Defaults to settings.cache.ttl_seconds.
        key_prefix: Namespace for the cache key
        key_builder: Custom function to build the cache key
        exclude_keys: Parameter names left out of key generation

    Cache failures are logged and the wrapped function is called directly,
    so a down cache never fails the request.
    """
    def decorator(func):
        sig = inspect.signature(func)
        func_name = func.__qualname__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            cache_backend = kwargs.pop("cache", None) or get_cache_backend()

            bound_args = sig.bind(*args, **kwargs)
            bound_args.apply_defaults()
            arg_dict = {
                k: v for k, v in bound_args.arguments.items()
                if k not in exclude_keys
                and not isinstance(v, (CacheBackend, Request, AsyncSession))
            }

            if key_builder:
                cache_key = key_builder(*args, **kwargs)
            else:
                cache_key = _get_cache_key(key_prefix, func_name, arg_dict)

            cached_value = None
            try:
                cached_value = await cache_backend.get(cache_key)
            except Exception as cache_exc:
                logger.error(f"Cache error during get: {cache_exc}")

            if cached_value is not None:
                logger.debug(f"Cache hit for key: {cache_key}")
                return json.loads(cached_value)

            logger.debug(f"Cache miss for key: {cache_key}")
            result = await func(*args, **kwargs)

            actual_ttl = ttl if ttl is not None else settings.cache.ttl_seconds
            try:
                serialized = json.dumps(jsonable_encoder(result))
                await cache_backend.set(cache_key, serialized, ex=actual_ttl)
            except Exception as cache_exc:
                logger.error(f"Cache error during set: {cache_exc}")

            return result

        return wrapper
    return decorator
