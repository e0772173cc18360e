from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from presto_sync.core.config import settings
from presto_sync.ingestion.providers.base.client import BaseHttpClient
from presto_sync.ingestion.providers.base.errors import (
    AuthenticationFailedError,
    ProviderBotChallenge,
    ProviderRateLimited,
    ProviderRequestError,
    ProviderResponseError,
)

Json = dict[str, Any]


@dataclass(frozen=True)
class TokenGrant:
    id_token: str
    refresh_token: str | None
    expires_in_seconds: int

    @classmethod
    def from_payload(cls, payload: Any) -> TokenGrant:
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict) or not payload.get("idToken"):
            raise ProviderResponseError("Token response did not include an idToken.")
        try:
            expires_in = int(payload.get("expirationTimeInSeconds") or 3600)
        except (TypeError, ValueError):
            expires_in = 3600
        refresh = payload.get("refreshToken")
        return cls(
            id_token=str(payload["idToken"]),
            refresh_token=str(refresh) if refresh else None,
            expires_in_seconds=expires_in,
        )


def unwrap_data(payload: Any) -> Any:
    """Strip the `{"data": ...}` envelope the data endpoints use."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


# Object payloads that wrap their list under one of these keys.
LIST_KEYS = (
    "items",
    "results",
    "players",
    "events",
    "photos",
    "videos",
    "releases",
    "seasons",
    "teams",
)


def as_items(payload: Any) -> list[Json]:
    """Coerce a list-shaped payload into a list of dict items."""
    data = unwrap_data(payload)
    if data is None:
        return []
    if isinstance(data, dict):
        for key in LIST_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            raise ProviderResponseError(
                f"Expected list payload, got object with keys {sorted(data)}"
            )
    if not isinstance(data, list):
        raise ProviderResponseError(f"Expected list payload, got {type(data)}")
    return [i for i in data if isinstance(i, dict)]


@dataclass
class PrestoApiClient:
    """Thin endpoint layer over BaseHttpClient for the PrestoSports gameday API."""

    http: BaseHttpClient

    # -----------------------------
    # Auth
    # -----------------------------

    def authenticate(self, username: str, password: str) -> TokenGrant:
        try:
            resp = self.http.request(
                "POST",
                "/auth/token",
                json={"username": username, "password": password},
                label="POST /auth/token",
            )
        except (ProviderRateLimited, ProviderBotChallenge):
            raise
        except ProviderRequestError as e:
            # No status: the request never got an answer.
            if e.status is None:
                raise
            detail = e.body.get("error_description") if isinstance(e.body, dict) else None
            raise AuthenticationFailedError(detail or "Authentication failed") from e
        try:
            return TokenGrant.from_payload(resp.data)
        except ProviderResponseError as e:
            raise AuthenticationFailedError(str(e)) from e

    def refresh_token(self, refresh_token: str) -> TokenGrant:
        resp = self.http.request(
            "POST",
            "/auth/token/refresh",
            json={"refreshToken": refresh_token},
            label="POST /auth/token/refresh",
        )
        return TokenGrant.from_payload(resp.data)

    # -----------------------------
    # Generic
    # -----------------------------

    def get(
        self,
        token: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        resp = self.http.request(
            "GET",
            path,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
            label=f"GET {path}",
        )
        return unwrap_data(resp.data)

    # -----------------------------
    # Discovery
    # -----------------------------

    def get_user_info(self, token: str) -> Any:
        return self.get(token, "/me/info")

    def get_seasons(self, token: str) -> Any:
        return self.get(token, "/me/seasons")

    def get_user_teams(self, token: str, criteria: Mapping[str, Any] | None = None) -> Any:
        return self.get(token, "/me/teams", criteria)

    def get_season_teams(
        self, token: str, season_id: str, criteria: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get(token, f"/seasons/{season_id}/teams", criteria)

    # -----------------------------
    # Teams / events
    # -----------------------------

    def get_team_players(self, token: str, team_id: str) -> Any:
        return self.get(token, f"/teams/{team_id}/players")

    def get_team_events(self, token: str, team_id: str) -> Any:
        return self.get(token, f"/teams/{team_id}/events")

    def get_team_releases(self, token: str, team_id: str) -> Any:
        return self.get(token, f"/teams/{team_id}/releases")

    def get_event(self, token: str, event_id: str) -> Any:
        return self.get(token, f"/events/{event_id}")

    def get_event_stats(self, token: str, event_id: str) -> Any:
        return self.get(token, f"/events/{event_id}/stats")

    def get_event_live_stats(self, token: str, event_id: str, home_team_id: str) -> Any:
        return self.get(token, f"/events/{event_id}/livestats", {"h": home_team_id})

    # -----------------------------
    # Players
    # -----------------------------

    def get_player(self, token: str, player_id: str) -> Any:
        return self.get(token, f"/player/{player_id}")

    def get_player_photos(self, token: str, player_id: str) -> Any:
        return self.get(token, f"/player/{player_id}/photos")

    def get_player_videos(self, token: str, player_id: str) -> Any:
        return self.get(token, f"/player/{player_id}/videos")

    # -----------------------------
    # Stats
    # -----------------------------

    def get_player_career_by_season(
        self, token: str, player_id: str, criteria: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get(token, f"/stats/player/{player_id}/career/season", criteria)

    def get_team_player_stats(
        self, token: str, team_id: str, criteria: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get(token, f"/stats/teams/{team_id}/players", criteria)

    def get_team_record(
        self, token: str, team_id: str, criteria: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get(token, f"/stats/teams/{team_id}/record", criteria)

    def get_team_stats(
        self, token: str, team_id: str, criteria: Mapping[str, Any] | None = None
    ) -> Any:
        return self.get(token, f"/stats/teams/{team_id}/stats", criteria)


def make_presto_client(**http_kwargs: Any) -> PrestoApiClient:
    http = BaseHttpClient(
        base_url=settings.presto_base_url,
        timeout_s=settings.presto_timeout_s,
        **http_kwargs,
    )
    return PrestoApiClient(http=http)
