from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

ValueT = TypeVar("ValueT")


class TokenCache(Protocol):
    """Key/value cache with per-entry TTL.

    The sync engine only uses it as an optimization; a miss always falls back
    to stored credentials. A distributed implementation can replace the
    in-memory one in multi-process deployments.
    """

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    def invalidate(self, key: str) -> None: ...


@dataclass
class _Entry(Generic[ValueT]):
    value: ValueT
    expires_monotonic: float


@dataclass
class InMemoryTokenCache:
    _monotonic: Any = field(default=time.monotonic, repr=False)
    _entries: dict[str, _Entry[Any]] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if float(self._monotonic()) >= entry.expires_monotonic:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            self.invalidate(key)
            return
        with self._lock:
            self._entries[key] = _Entry(
                value=value,
                expires_monotonic=float(self._monotonic()) + ttl_seconds,
            )

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# Process-wide default; last writer wins per key.
default_token_cache = InMemoryTokenCache()
