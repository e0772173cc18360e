"""Connecting a team to PrestoSports and discovering its provider ids."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.core.cache import TokenCache, default_token_cache
from presto_sync.core.crypto import SecretCipher, SecretDecryptionError, encrypt_json
from presto_sync.core.sanitize import sanitize_error
from presto_sync.db.enums import CredentialTypeEnum, ProviderEnum
from presto_sync.db.models.core.team import Team
from presto_sync.db.models.integration.integration_credential import IntegrationCredential
from presto_sync.db.repos.core.team_repo import TeamRepository
from presto_sync.db.repos.integration.integration_credential_repo import (
    IntegrationCredentialRepository,
)
from presto_sync.ingestion.providers.base.errors import NotConfiguredError, ProviderError

from .auth import TokenManager, token_cache_key
from .client import PrestoApiClient, as_items, unwrap_data

logger = logging.getLogger(__name__)


def _team(session: Session, team_id: int) -> Team:
    team = TeamRepository(session).get(team_id)
    if team is None:
        raise NotConfiguredError(f"Team {team_id} does not exist")
    return team


def _merged_config(
    current: dict[str, Any] | None, presto_team_id: str | None, presto_season_id: str | None
) -> dict[str, Any]:
    config = dict(current or {})
    if presto_team_id is not None:
        config["team_id"] = presto_team_id
    if presto_season_id is not None:
        config["season_id"] = presto_season_id
    return config


def configure_presto_credentials(
    session: Session,
    *,
    team_id: int,
    username: str,
    password: str,
    cipher: SecretCipher,
    presto_team_id: str | None = None,
    presto_season_id: str | None = None,
    cache: TokenCache = default_token_cache,
) -> IntegrationCredential:
    """Store encrypted credentials for a team, replacing any previous ones.

    Stored tokens are discarded so the next sync authenticates with the new
    username and password.
    """
    if not username or not password:
        raise ValueError("username and password are required")

    team = _team(session, team_id)
    repo = IntegrationCredentialRepository(session)
    credential = repo.find_for_team(team_id, ProviderEnum.PRESTO)
    secret = encrypt_json(cipher, {"username": username, "password": password})

    if credential is None:
        credential = repo.add(
            IntegrationCredential(
                team_id=team_id,
                provider=ProviderEnum.PRESTO,
                credential_type=CredentialTypeEnum.BASIC,
                credentials_encrypted=secret,
                config=_merged_config(None, presto_team_id, presto_season_id),
            )
        )
    else:
        credential.credentials_encrypted = secret
        credential.config = _merged_config(credential.config, presto_team_id, presto_season_id)

    credential.access_token_encrypted = None
    credential.refresh_token_encrypted = None
    credential.token_expires_at = None
    credential.refresh_token_expires_at = None
    credential.refresh_error_count = 0
    credential.last_refresh_error = None
    credential.is_active = True

    if presto_team_id is not None:
        team.presto_team_id = presto_team_id
    if presto_season_id is not None:
        team.presto_season_id = presto_season_id

    session.commit()
    cache.invalidate(token_cache_key(team_id))
    logger.info("Configured PrestoSports credentials for team %s", team_id)
    return credential


def update_presto_settings(
    session: Session,
    *,
    team_id: int,
    presto_team_id: str | None = None,
    presto_season_id: str | None = None,
) -> Team:
    """Change the provider team/season ids without touching credentials."""
    team = _team(session, team_id)
    if presto_team_id is not None:
        team.presto_team_id = presto_team_id
    if presto_season_id is not None:
        team.presto_season_id = presto_season_id

    credential = IntegrationCredentialRepository(session).find_for_team(
        team_id, ProviderEnum.PRESTO
    )
    if credential is not None:
        credential.config = _merged_config(credential.config, presto_team_id, presto_season_id)

    session.commit()
    return team


def disconnect_presto(
    session: Session, *, team_id: int, cache: TokenCache = default_token_cache
) -> bool:
    """Delete the team's credential; returns False when there was none."""
    repo = IntegrationCredentialRepository(session)
    credential = repo.find_for_team(team_id, ProviderEnum.PRESTO)
    cache.invalidate(token_cache_key(team_id))
    if credential is None:
        return False
    repo.delete(credential)
    session.commit()
    logger.info("Disconnected PrestoSports for team %s", team_id)
    return True


@dataclass(frozen=True)
class ConnectionTestResult:
    ok: bool
    message: str
    user_info: dict[str, Any] | None = None


def test_presto_connection(
    session: Session, *, team_id: int, api: PrestoApiClient, tokens: TokenManager
) -> ConnectionTestResult:
    """Authenticate with the stored credentials and read `/me/info`."""
    try:
        info = tokens.call(team_id, api.get_user_info)
    except (ProviderError, SecretDecryptionError) as e:
        message = sanitize_error(e) or e.__class__.__name__
        logger.warning("PrestoSports connection test failed for team %s: %s", team_id, message)
        return ConnectionTestResult(ok=False, message=message)

    data = unwrap_data(info)
    return ConnectionTestResult(
        ok=True,
        message="Connected",
        user_info=dict(data) if isinstance(data, dict) else None,
    )


def list_presto_seasons(
    session: Session, *, team_id: int, api: PrestoApiClient, tokens: TokenManager
) -> list[dict[str, Any]]:
    return as_items(tokens.call(team_id, api.get_seasons))


def list_presto_teams(
    session: Session,
    *,
    team_id: int,
    api: PrestoApiClient,
    tokens: TokenManager,
    season_id: str | None = None,
) -> list[dict[str, Any]]:
    """Teams visible to the account, optionally narrowed to one season."""
    if season_id:
        payload = tokens.call(team_id, lambda token: api.get_season_teams(token, season_id))
    else:
        payload = tokens.call(team_id, api.get_user_teams)
    return as_items(payload)
