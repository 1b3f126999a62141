from __future__ import annotations

import time

from vetsaas.cache.backends.memory import MemoryBackend
from vetsaas.cache.decorators import cached


async def test_memory_backend_expiry():
    backend = MemoryBackend()

    await backend.set("plans", "[]", ex=10)
    assert await backend.get("plans") == "[]"

    backend._data["plans"] = ("[]", time.monotonic() - 1)
    assert await backend.get("plans") is None
    assert await backend.delete("plans") == 0


async def test_cached_decorator_reuses_result():
    backend = MemoryBackend()
    calls = []

    @cached(ttl=60, key_prefix="test")
    async def compute(value: int):
        calls.append(value)
        return {"value": value * 2}

    assert await compute(2, cache=backend) == {"value": 4}
    assert await compute(2, cache=backend) == {"value": 4}
    assert await compute(3, cache=backend) == {"value": 6}
    assert calls == [2, 3]
