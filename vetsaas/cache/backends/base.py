"""Abstract cache backend interface."""
from __future__ import annotations

import abc
from typing import Optional


class CacheBackend(abc.ABC):
    """Minimal async key/value interface used by the ``cached`` decorator."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or ``None``."""

    @abc.abstractmethod
    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        """Store ``value`` with an optional expiry in seconds."""

    @abc.abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""

    async def close(self) -> None:
        return None
