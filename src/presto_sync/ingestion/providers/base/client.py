from __future__ import annotations

import json as jsonlib
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Mapping

import httpx

from presto_sync.core.config import settings

from .diagnostics import TransportDiagnostics, get_default_diagnostics
from .errors import (
    ProviderAuthExpired,
    ProviderBotChallenge,
    ProviderForbidden,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderRequestError,
    ProviderTransientError,
)
from .types import HttpResponse, RequestLogEntry

logger = logging.getLogger(__name__)

Json = dict[str, Any]

# Lower-cased markers of anti-automation interstitials (Cloudflare and friends).
BOT_CHALLENGE_MARKERS: tuple[str, ...] = (
    "cf-chl",
    "cf_chl_opt",
    "challenge-platform",
    "just a moment",
    "attention required",
    "captcha",
)

RETRYABLE_STATUSES = frozenset({403, 429})


def is_bot_challenge(body: Any) -> bool:
    if body is None:
        return False
    text = body if isinstance(body, str) else jsonlib.dumps(body, default=str)
    lowered = text.lower()
    return any(marker in lowered for marker in BOT_CHALLENGE_MARKERS)


def _parse_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _error_detail(body: Any) -> str | None:
    if isinstance(body, dict):
        for key in ("error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def error_for_status(status: int, body: Any, *, label: str) -> ProviderRequestError:
    detail = _error_detail(body)
    message = f"HTTP {status} for {label}" + (f": {detail}" if detail else "")

    if status == 404:
        return ProviderNotFound(message, status=status, body=body)
    if status == 401:
        return ProviderAuthExpired(message, status=status, body=body)
    if status == 429:
        return ProviderRateLimited(message, status=status, body=body)
    if status == 403:
        if is_bot_challenge(body):
            return ProviderBotChallenge(
                f"Bot challenge (HTTP 403) for {label}", status=status, body=body
            )
        return ProviderForbidden(message, status=status, body=body)
    return ProviderRequestError(message, status=status, body=body)


@dataclass
class RequestThrottle:
    """Minimum spacing between outbound request starts.

    One instance is shared by every client in the process so that all teams
    together stay under the provider's pacing.
    """

    min_interval_s: float = 1.0
    last_request_monotonic: float | None = None

    _sleep: Any = field(default=time.sleep, repr=False)
    _monotonic: Any = field(default=time.monotonic, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def wait(self) -> bool:
        """Block until the interval has elapsed, then claim the slot.

        Returns True when the call had to sleep.
        """
        with self._lock:
            slept = False
            if self.min_interval_s > 0.0 and self.last_request_monotonic is not None:
                elapsed = float(self._monotonic()) - self.last_request_monotonic
                remaining = self.min_interval_s - elapsed
                if remaining > 0:
                    self._sleep(remaining)
                    slept = True
            self.last_request_monotonic = float(self._monotonic())
            return slept

    def mark(self) -> None:
        with self._lock:
            self.last_request_monotonic = float(self._monotonic())


_default_throttle = RequestThrottle(min_interval_s=settings.presto_min_request_interval_s)


def get_default_throttle() -> RequestThrottle:
    return _default_throttle


@dataclass
class BaseHttpClient:
    """
    Provider-agnostic HTTP client wrapper.

    - Uses a single underlying httpx.Client for connection pooling.
    - Paces every request through a shared RequestThrottle.
    - Retries 403/429/network failures with exponential backoff.
    - Maps terminal failures onto the ProviderRequestError hierarchy.
    """

    base_url: str
    timeout_s: float = 30.0
    connect_timeout_s: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)

    max_retries: int = field(default_factory=lambda: settings.presto_max_retries)
    retry_base_delay_s: float = field(default_factory=lambda: settings.presto_retry_base_delay_s)

    throttle: RequestThrottle = field(default_factory=get_default_throttle)
    diagnostics: TransportDiagnostics = field(default_factory=get_default_diagnostics)

    transport: httpx.BaseTransport | None = None

    _sleep: Any = field(default=time.sleep, repr=False)
    _monotonic: Any = field(default=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        self._client = httpx.Client(
            base_url=self.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(self.timeout_s, connect=self.connect_timeout_s),
            headers=dict(self.headers),
            transport=self.transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> BaseHttpClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        label: str | None = None,
        max_retries: int | None = None,
        throttle: bool = True,
    ) -> HttpResponse:
        """
        Perform an HTTP request and return the parsed body.

        Raises a ProviderRequestError subclass carrying `status` and `body` once
        retries are exhausted or the failure is terminal.
        """
        method = method.upper()
        label = label or f"{method} {path}"
        retries = self.max_retries if max_retries is None else max(0, max_retries)

        if throttle:
            self.throttle.wait()
        started = float(self._monotonic())
        bot_challenge = False
        attempts = 0

        for attempt in range(retries + 1):
            attempts = attempt + 1
            if attempt > 0 or not throttle:
                self.throttle.mark()

            error: ProviderRequestError
            try:
                resp = self._client.request(
                    method=method,
                    url=path.lstrip("/"),
                    params=params,
                    json=json,
                    headers=headers,
                )
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                error = ProviderTransientError(f"Network error for {label}: {e}")
                error.__cause__ = e
            else:
                body = _parse_body(resp)
                if resp.status_code < 400:
                    duration_ms = self._elapsed_ms(started)
                    self.diagnostics.record(
                        RequestLogEntry(
                            timestamp=datetime.now(tz=UTC),
                            method=method,
                            endpoint=label,
                            attempts=attempts,
                            status=resp.status_code,
                            duration_ms=duration_ms,
                            throttled=throttle,
                            bot_challenge=bot_challenge,
                        ),
                        ok=True,
                    )
                    if attempt > 0:
                        logger.info(
                            "OK %s after %d retries (%dms)", label, attempt, duration_ms
                        )
                    return HttpResponse(
                        status=resp.status_code, data=body, headers=dict(resp.headers)
                    )

                error = error_for_status(resp.status_code, body, label=label)
                if isinstance(error, ProviderBotChallenge):
                    bot_challenge = True
                    self.diagnostics.record_bot_challenge()
                    logger.warning("Bot challenge detected on %s", label)

            retryable = isinstance(error, ProviderTransientError) and (
                error.status is None or error.status in RETRYABLE_STATUSES
            )
            if retryable and attempt < retries:
                delay = self.retry_base_delay_s * (2**attempt)
                self.diagnostics.record_retry()
                logger.warning(
                    "%s on %s, retry %d/%d after %.1fs",
                    error.status or "NETWORK_ERROR",
                    label,
                    attempt + 1,
                    retries,
                    delay,
                )
                self._sleep(delay)
                continue

            duration_ms = self._elapsed_ms(started)
            self.diagnostics.record(
                RequestLogEntry(
                    timestamp=datetime.now(tz=UTC),
                    method=method,
                    endpoint=label,
                    attempts=attempts,
                    status=error.status,
                    duration_ms=duration_ms,
                    throttled=throttle,
                    bot_challenge=bot_challenge,
                    error=str(error),
                ),
                ok=False,
            )
            if error.status != 404:
                logger.error(
                    "FAIL %s -> %s after %d attempts (%dms)",
                    label,
                    error.status or "NETWORK_ERROR",
                    attempts,
                    duration_ms,
                )
            raise error

        raise AssertionError("unreachable")  # pragma: no cover

    def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        label: str | None = None,
    ) -> HttpResponse:
        return self.request("GET", path, params=params, headers=headers, label=label)

    def _elapsed_ms(self, started: float) -> int:
        return int((float(self._monotonic()) - started) * 1000)
