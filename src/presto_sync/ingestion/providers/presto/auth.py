from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from presto_sync.core.cache import TokenCache, default_token_cache
from presto_sync.core.config import settings
from presto_sync.core.crypto import (
    SecretCipher,
    SecretDecryptionError,
    decrypt_json,
    decrypt_text,
    encrypt_text,
)
from presto_sync.core.sanitize import sanitize_error
from presto_sync.db.enums import ProviderEnum
from presto_sync.db.models.integration.integration_credential import IntegrationCredential
from presto_sync.db.repos.integration.integration_credential_repo import (
    IntegrationCredentialRepository,
)
from presto_sync.ingestion.dates import ensure_utc, utcnow
from presto_sync.ingestion.providers.base.errors import (
    NotConfiguredError,
    ProviderAuthExpired,
    ProviderError,
)

from .client import PrestoApiClient, TokenGrant

logger = logging.getLogger(__name__)

T = TypeVar("T")


def token_cache_key(team_id: int) -> str:
    return f"presto:token:{team_id}"


@dataclass(frozen=True)
class CachedToken:
    id_token: str
    expires_at: datetime


@dataclass
class TokenManager:
    """Bearer tokens for a team, cheapest source first.

    1. cache entry with more than `refresh_margin_s` left
    2. stored access token still valid beyond the margin
    3. stored refresh token exchanged for a new pair
    4. full authentication with the stored username/password

    A failed refresh is recorded on the credential and falls through to step 4.
    """

    session: Session
    api: PrestoApiClient
    cipher: SecretCipher
    cache: TokenCache = field(default_factory=lambda: default_token_cache)
    refresh_margin_s: int = field(default_factory=lambda: settings.token_refresh_margin_s)
    refresh_token_ttl_days: int = field(
        default_factory=lambda: settings.presto_refresh_token_ttl_days
    )

    _now: Any = field(default=utcnow, repr=False)

    def get_token(self, team_id: int) -> str:
        now = self._now()
        margin = timedelta(seconds=self.refresh_margin_s)

        cached = self.cache.get(token_cache_key(team_id))
        if isinstance(cached, CachedToken) and cached.expires_at - now > margin:
            return cached.id_token

        credential = self._active_credential(team_id)

        expires_at = ensure_utc(credential.token_expires_at)
        if credential.access_token_encrypted and expires_at and expires_at - now > margin:
            try:
                token = decrypt_text(self.cipher, credential.access_token_encrypted)
            except SecretDecryptionError:
                logger.warning("Stored access token for team %s is unreadable", team_id)
            else:
                self._cache(team_id, token, expires_at, now)
                return token

        refresh_expires_at = ensure_utc(credential.refresh_token_expires_at)
        if credential.refresh_token_encrypted and (
            refresh_expires_at is None or refresh_expires_at > now
        ):
            try:
                refresh_token = decrypt_text(self.cipher, credential.refresh_token_encrypted)
                grant = self.api.refresh_token(refresh_token)
            except (ProviderError, SecretDecryptionError) as e:
                credential.refresh_error_count = (credential.refresh_error_count or 0) + 1
                credential.last_refresh_error = sanitize_error(e)
                self.session.commit()
                logger.warning(
                    "Token refresh failed for team %s (attempt %d), re-authenticating: %s",
                    team_id,
                    credential.refresh_error_count,
                    credential.last_refresh_error,
                )
            else:
                credential.refresh_error_count = 0
                credential.last_refresh_error = None
                logger.info("Refreshed presto token for team %s", team_id)
                return self._store_grant(team_id, credential, grant, now)

        return self._authenticate(team_id, credential, now)

    def call(self, team_id: int, fn: Callable[[str], T]) -> T:
        """Run `fn(token)`; on a rejected token, drop it and retry once."""
        token = self.get_token(team_id)
        try:
            return fn(token)
        except ProviderAuthExpired:
            logger.info("Token rejected for team %s; re-acquiring", team_id)
            self.invalidate(team_id, clear_stored=True)
            return fn(self.get_token(team_id))

    def invalidate(self, team_id: int, *, clear_stored: bool = False) -> None:
        self.cache.invalidate(token_cache_key(team_id))
        if not clear_stored:
            return
        credential = IntegrationCredentialRepository(self.session).find_for_team(
            team_id, ProviderEnum.PRESTO
        )
        if credential is not None:
            credential.access_token_encrypted = None
            credential.token_expires_at = None
            self.session.commit()

    # -----------------------------
    # Internals
    # -----------------------------

    def _active_credential(self, team_id: int) -> IntegrationCredential:
        credential = IntegrationCredentialRepository(self.session).find_active(
            team_id, ProviderEnum.PRESTO
        )
        if credential is None:
            raise NotConfiguredError(f"PrestoSports is not configured for team {team_id}")
        return credential

    def _authenticate(self, team_id: int, credential: IntegrationCredential, now: datetime) -> str:
        if not credential.credentials_encrypted:
            raise NotConfiguredError(f"No stored PrestoSports credentials for team {team_id}")
        secret = decrypt_json(self.cipher, credential.credentials_encrypted)
        username, password = secret.get("username"), secret.get("password")
        if not username or not password:
            raise NotConfiguredError(
                f"Stored PrestoSports credentials for team {team_id} are incomplete"
            )

        grant = self.api.authenticate(str(username), str(password))
        logger.info("Authenticated with presto for team %s", team_id)
        return self._store_grant(team_id, credential, grant, now)

    def _store_grant(
        self,
        team_id: int,
        credential: IntegrationCredential,
        grant: TokenGrant,
        now: datetime,
    ) -> str:
        expires_at = now + timedelta(seconds=grant.expires_in_seconds)
        credential.access_token_encrypted = encrypt_text(self.cipher, grant.id_token)
        credential.token_expires_at = expires_at
        if grant.refresh_token:
            credential.refresh_token_encrypted = encrypt_text(self.cipher, grant.refresh_token)
            credential.refresh_token_expires_at = now + timedelta(
                days=self.refresh_token_ttl_days
            )
        credential.last_refreshed_at = now
        self.session.commit()

        self._cache(team_id, grant.id_token, expires_at, now)
        return grant.id_token

    def _cache(self, team_id: int, token: str, expires_at: datetime, now: datetime) -> None:
        ttl = (expires_at - now).total_seconds()
        self.cache.set(token_cache_key(team_id), CachedToken(token, expires_at), ttl)
