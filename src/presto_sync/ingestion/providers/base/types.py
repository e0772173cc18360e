from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

Json = dict[str, Any]


@dataclass(frozen=True)
class HttpResponse:
    """Successful upstream response; `data` is parsed JSON or raw text."""
    status: int
    data: Any
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestLogEntry:
    timestamp: datetime
    method: str
    endpoint: str
    attempts: int
    status: int | None
    duration_ms: int
    throttled: bool
    bot_challenge: bool = False
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "endpoint": self.endpoint,
            "attempts": self.attempts,
            "status": self.status if self.status is not None else "NETWORK_ERROR",
            "duration_ms": self.duration_ms,
            "throttled": self.throttled,
            "bot_challenge": self.bot_challenge,
            "error": self.error,
        }
