from __future__ import annotations

import httpx
import pytest

from presto_sync.ingestion.providers.base.client import BaseHttpClient, RequestThrottle
from presto_sync.ingestion.providers.base.diagnostics import TransportDiagnostics
from presto_sync.ingestion.providers.base.errors import (
    ProviderBotChallenge,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderTransientError,
)

CHALLENGE_PAGE = "<html><title>Just a moment...</title><script src='/cdn-cgi/challenge-platform/'>"


def _client(handler, *, max_retries: int = 3, sleeps: list[float] | None = None) -> BaseHttpClient:
    recorded = sleeps if sleeps is not None else []
    return BaseHttpClient(
        base_url="https://presto.test/api",
        max_retries=max_retries,
        retry_base_delay_s=1.0,
        throttle=RequestThrottle(min_interval_s=0.0),
        diagnostics=TransportDiagnostics(),
        transport=httpx.MockTransport(handler),
        _sleep=recorded.append,
    )


def test_rate_limited_requests_back_off_then_succeed() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if len(calls) <= 3:
            return httpx.Response(429, json={"message": "slow down"})
        return httpx.Response(200, json={"data": [{"id": 1}]})

    sleeps: list[float] = []
    client = _client(handler, max_retries=3, sleeps=sleeps)

    resp = client.get("/teams/t1/players")

    assert resp.status == 200
    assert resp.data == {"data": [{"id": 1}]}
    assert calls == ["/api/teams/t1/players"] * 4
    assert sleeps == [1.0, 2.0, 4.0]

    entry = client.diagnostics.entries()[-1]
    assert entry.attempts == 4
    assert entry.status == 200
    assert client.diagnostics.stats()["retried"] == 3
    assert client.diagnostics.stats()["success"] == 1


def test_rate_limit_surfaces_after_retries_are_exhausted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"message": "slow down"})

    client = _client(handler, max_retries=1)

    with pytest.raises(ProviderRateLimited) as exc:
        client.get("/teams/t1/events")

    assert exc.value.status == 429
    assert client.diagnostics.entries()[-1].attempts == 2
    assert client.diagnostics.stats()["failed"] == 1


def test_not_found_is_not_retried() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(404, json={"message": "no such event"})

    sleeps: list[float] = []
    client = _client(handler, sleeps=sleeps)

    with pytest.raises(ProviderNotFound):
        client.get("/events/e1/livestats")

    assert len(calls) == 1
    assert sleeps == []


def test_bot_challenge_page_is_flagged() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text=CHALLENGE_PAGE)

    client = _client(handler, max_retries=2)

    with pytest.raises(ProviderBotChallenge):
        client.get("/teams/t1/players")

    entry = client.diagnostics.entries()[-1]
    assert entry.bot_challenge is True
    assert entry.attempts == 3
    assert client.diagnostics.stats()["bot_challenges"] == 3


def test_network_errors_are_transient_and_logged_without_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    sleeps: list[float] = []
    client = _client(handler, max_retries=1, sleeps=sleeps)

    with pytest.raises(ProviderTransientError) as exc:
        client.get("/me/info")

    assert exc.value.status is None
    assert sleeps == [1.0]
    assert client.diagnostics.entries()[-1].as_dict()["status"] == "NETWORK_ERROR"


def test_throttle_spaces_consecutive_requests() -> None:
    sleeps: list[float] = []
    now = [0.0]

    throttle = RequestThrottle(
        min_interval_s=1.0, _sleep=sleeps.append, _monotonic=lambda: now[0]
    )

    assert throttle.wait() is False
    now[0] = 0.25
    assert throttle.wait() is True
    now[0] = 5.0
    assert throttle.wait() is False

    assert sleeps == [0.75]


def test_diagnostics_buffer_is_bounded() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    client = _client(handler)
    client.diagnostics = TransportDiagnostics(max_entries=2)

    for _ in range(5):
        client.get("/me/info")

    snapshot = client.diagnostics.snapshot()
    assert snapshot["stats"]["total"] == 5
    assert len(snapshot["recent_requests"]) == 2
