from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import httpx
import pytest
from cryptography.fernet import Fernet
from sqlalchemy.orm import Session

from presto_sync.core.cache import InMemoryTokenCache
from presto_sync.core.crypto import FernetCipher, decrypt_text, encrypt_text
from presto_sync.db.models.core.team import Team
from presto_sync.ingestion.providers.base.client import BaseHttpClient, RequestThrottle
from presto_sync.ingestion.providers.base.diagnostics import TransportDiagnostics
from presto_sync.ingestion.providers.base.errors import (
    AuthenticationFailedError,
    NotConfiguredError,
    ProviderAuthExpired,
    ProviderBotChallenge,
    ProviderRequestError,
    ProviderTransientError,
)
from presto_sync.ingestion.providers.presto import credentials
from presto_sync.ingestion.providers.presto.auth import TokenManager
from presto_sync.ingestion.providers.presto.client import PrestoApiClient, TokenGrant, as_items

NOW = datetime(2025, 3, 1, 18, 0, tzinfo=UTC)


def _api(handler) -> PrestoApiClient:
    http = BaseHttpClient(
        base_url="https://presto.test/api/v2",
        max_retries=0,
        throttle=RequestThrottle(min_interval_s=0.0),
        diagnostics=TransportDiagnostics(),
        transport=httpx.MockTransport(handler),
        _sleep=lambda s: None,
    )
    return PrestoApiClient(http=http)


class FakeAuthApi:
    def __init__(self, *, refresh_fails: bool = False) -> None:
        self.refresh_fails = refresh_fails
        self.authenticated: list[tuple[str, str]] = []
        self.refreshed: list[str] = []

    def authenticate(self, username: str, password: str) -> TokenGrant:
        self.authenticated.append((username, password))
        return TokenGrant(
            id_token=f"auth-{len(self.authenticated)}",
            refresh_token="refresh-new",
            expires_in_seconds=3600,
        )

    def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.refreshed.append(refresh_token)
        if self.refresh_fails:
            raise ProviderRequestError("HTTP 400 for POST /auth/token/refresh", status=400)
        return TokenGrant(id_token="refreshed", refresh_token=None, expires_in_seconds=3600)


@pytest.fixture
def cipher() -> FernetCipher:
    return FernetCipher(Fernet.generate_key())


@pytest.fixture
def cache() -> InMemoryTokenCache:
    return InMemoryTokenCache()


def _connect(session: Session, team: Team, cipher: FernetCipher, cache: InMemoryTokenCache):
    return credentials.configure_presto_credentials(
        session,
        team_id=team.id,
        username="coach@example.edu",
        password="hunter2",
        cipher=cipher,
        cache=cache,
    )


def _manager(session, api, cipher, cache) -> TokenManager:
    return TokenManager(
        session=session,
        api=api,
        cipher=cipher,
        cache=cache,
        refresh_margin_s=300,
        refresh_token_ttl_days=30,
        _now=lambda: NOW,
    )


def test_authenticate_posts_credentials_and_reads_grant() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        assert request.url.path == "/api/v2/auth/token"
        return httpx.Response(
            200,
            json={
                "idToken": "id-abc",
                "refreshToken": "refresh-abc",
                "expirationTimeInSeconds": 1800,
            },
        )

    grant = _api(handler).authenticate("coach", "secret")

    assert seen == [{"username": "coach", "password": "secret"}]
    assert grant == TokenGrant(
        id_token="id-abc", refresh_token="refresh-abc", expires_in_seconds=1800
    )


def test_rejected_login_raises_authentication_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error_description": "Bad credentials"})

    with pytest.raises(AuthenticationFailedError, match="Bad credentials"):
        _api(handler).authenticate("coach", "wrong")


def test_forbidden_login_raises_authentication_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error_description": "Invalid username or password"})

    with pytest.raises(AuthenticationFailedError, match="Invalid username or password"):
        _api(handler).authenticate("coach", "wrong")


def test_bot_challenge_on_login_is_not_a_credential_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="<html>Just a moment... cf-chl challenge</html>")

    with pytest.raises(ProviderBotChallenge):
        _api(handler).authenticate("coach", "secret")


def test_unreachable_login_is_not_a_credential_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderTransientError):
        _api(handler).authenticate("coach", "secret")


def test_data_calls_send_bearer_token_and_unwrap_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok-1"
        assert request.url.params["h"] == "t100"
        return httpx.Response(200, json={"data": {"status": "in progress"}})

    data = _api(handler).get_event_live_stats("tok-1", "e9", "t100")

    assert data == {"status": "in progress"}


def test_expired_bearer_token_maps_to_auth_expired() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "expired"})

    with pytest.raises(ProviderAuthExpired):
        _api(handler).get_team_players("stale", "t100")


def test_as_items_accepts_bare_and_wrapped_lists() -> None:
    assert as_items({"data": [{"id": 1}, "junk"]}) == [{"id": 1}]
    assert as_items({"data": {"players": [{"id": 2}]}}) == [{"id": 2}]
    assert as_items(None) == []


def test_cached_token_skips_credential_lookup(session, team, cipher, cache) -> None:
    _connect(session, team, cipher, cache)
    api = FakeAuthApi()
    manager = _manager(session, api, cipher, cache)

    first = manager.get_token(team.id)
    second = manager.get_token(team.id)

    assert first == second == "auth-1"
    assert len(api.authenticated) == 1
    assert api.authenticated[0] == ("coach@example.edu", "hunter2")


def test_stored_access_token_is_reused(session, team, cipher, cache) -> None:
    credential = _connect(session, team, cipher, cache)
    credential.access_token_encrypted = encrypt_text(cipher, "stored-token")
    credential.token_expires_at = NOW + timedelta(hours=1)
    session.commit()
    api = FakeAuthApi()

    assert _manager(session, api, cipher, cache).get_token(team.id) == "stored-token"
    assert api.authenticated == []
    assert api.refreshed == []


def test_expired_access_token_uses_refresh_token(session, team, cipher, cache) -> None:
    credential = _connect(session, team, cipher, cache)
    credential.access_token_encrypted = encrypt_text(cipher, "old-token")
    credential.token_expires_at = NOW + timedelta(seconds=60)
    credential.refresh_token_encrypted = encrypt_text(cipher, "refresh-1")
    credential.refresh_token_expires_at = NOW + timedelta(days=10)
    session.commit()
    api = FakeAuthApi()

    token = _manager(session, api, cipher, cache).get_token(team.id)

    assert token == "refreshed"
    assert api.refreshed == ["refresh-1"]
    assert api.authenticated == []
    assert decrypt_text(cipher, credential.access_token_encrypted) == "refreshed"
    assert decrypt_text(cipher, credential.refresh_token_encrypted) == "refresh-1"


def test_failed_refresh_falls_back_to_authentication(session, team, cipher, cache) -> None:
    credential = _connect(session, team, cipher, cache)
    credential.refresh_token_encrypted = encrypt_text(cipher, "refresh-1")
    session.commit()
    api = FakeAuthApi(refresh_fails=True)

    token = _manager(session, api, cipher, cache).get_token(team.id)

    assert token == "auth-1"
    assert len(api.authenticated) == 1
    assert credential.refresh_error_count == 1
    assert "HTTP 400" in credential.last_refresh_error
    assert decrypt_text(cipher, credential.refresh_token_encrypted) == "refresh-new"


def test_call_retries_once_after_a_rejected_token(session, team, cipher, cache) -> None:
    _connect(session, team, cipher, cache)
    api = FakeAuthApi()
    manager = _manager(session, api, cipher, cache)
    seen: list[str] = []

    def fetch(token: str) -> str:
        seen.append(token)
        if len(seen) == 1:
            raise ProviderAuthExpired("HTTP 401", status=401)
        return "payload"

    assert manager.call(team.id, fetch) == "payload"
    assert seen == ["auth-1", "refreshed"]


def test_missing_credential_is_not_configured(session, team, cipher, cache) -> None:
    manager = _manager(session, FakeAuthApi(), cipher, cache)

    with pytest.raises(NotConfiguredError):
        manager.get_token(team.id)


def test_reconfiguring_clears_tokens_and_updates_team_ids(session, team, cipher, cache) -> None:
    credential = _connect(session, team, cipher, cache)
    credential.access_token_encrypted = encrypt_text(cipher, "old")
    credential.refresh_error_count = 4
    session.commit()

    credentials.configure_presto_credentials(
        session,
        team_id=team.id,
        username="new@example.edu",
        password="pw",
        cipher=cipher,
        presto_team_id="t200",
        cache=cache,
    )

    assert credential.access_token_encrypted is None
    assert credential.refresh_error_count == 0
    assert credential.config == {"team_id": "t200"}
    assert team.presto_team_id == "t200"
    assert team.presto_season_id == "s2025"


def test_disconnect_removes_credential(session, team, cipher, cache) -> None:
    _connect(session, team, cipher, cache)

    assert credentials.disconnect_presto(session, team_id=team.id, cache=cache) is True
    assert credentials.disconnect_presto(session, team_id=team.id, cache=cache) is False


def test_connection_test_reports_failure_without_raising(session, team, cipher, cache) -> None:
    manager = _manager(session, FakeAuthApi(), cipher, cache)

    result = credentials.test_presto_connection(
        session, team_id=team.id, api=SimpleNamespace(get_user_info=dict), tokens=manager
    )

    assert result.ok is False
    assert "not configured" in result.message
