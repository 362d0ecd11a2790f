from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from django.core.cache import BaseCache
from django.core.cache import cache as default_cache


class PlanCache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    def evict(self, key: str) -> None: ...


class MemoryPlanCache:
    """In-process TTL store owned by one planning service.

    Reads check expiry and drop stale entries under the same lock that guards
    writes, so a caller never sees an expired value.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def evict(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class DjangoPlanCache:
    def __init__(self, backend: BaseCache | None = None, prefix: str = "trip-plan") -> None:
        self._backend = backend or default_cache
        self._prefix = prefix

    def get(self, key: str) -> Any | None:
        return self._backend.get(self._key(key))

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._backend.set(self._key(key), value, timeout=ttl_seconds)

    def evict(self, key: str) -> None:
        self._backend.delete(self._key(key))

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"
