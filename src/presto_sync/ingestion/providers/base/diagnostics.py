from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from presto_sync.core.config import settings

from .types import RequestLogEntry


@dataclass
class TransportDiagnostics:
    """Rolling request counters plus a bounded log of recent requests.

    Telemetry only; nothing in the transport reads it back to make decisions.
    """

    max_entries: int = 100

    total: int = 0
    success: int = 0
    retried: int = 0
    failed: int = 0
    bot_challenges: int = 0

    _entries: deque[RequestLogEntry] = field(init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self._entries = deque(maxlen=self.max_entries)

    def record(self, entry: RequestLogEntry, *, ok: bool) -> None:
        with self._lock:
            self.total += 1
            if ok:
                self.success += 1
            else:
                self.failed += 1
            self._entries.append(entry)

    def record_retry(self) -> None:
        with self._lock:
            self.retried += 1

    def record_bot_challenge(self) -> None:
        with self._lock:
            self.bot_challenges += 1

    def entries(self) -> list[RequestLogEntry]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "total": self.total,
                "success": self.success,
                "retried": self.retried,
                "failed": self.failed,
                "bot_challenges": self.bot_challenges,
            }

    def snapshot(self, limit: int = 50) -> dict[str, Any]:
        recent = self.entries()[-limit:] if limit > 0 else []
        return {
            "stats": self.stats(),
            "recent_requests": [e.as_dict() for e in recent],
        }

    def reset(self) -> None:
        with self._lock:
            self.total = self.success = self.retried = self.failed = self.bot_challenges = 0
            self._entries.clear()


_default_diagnostics = TransportDiagnostics(max_entries=settings.diagnostics_buffer_size)


def get_default_diagnostics() -> TransportDiagnostics:
    return _default_diagnostics
