from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from presto_sync.core.cache import TokenCache, default_token_cache
from presto_sync.core.crypto import SecretCipher, default_cipher

from .auth import TokenManager
from .client import PrestoApiClient, make_presto_client


@dataclass(frozen=True)
class PrestoProvider:
    """The pair every synchronizer takes: an API client and a token source."""

    api: PrestoApiClient
    tokens: TokenManager

    def close(self) -> None:
        self.api.http.close()


def build_presto_provider(
    session: Session,
    *,
    cipher: SecretCipher | None = None,
    cache: TokenCache | None = None,
    **http_kwargs: Any,
) -> PrestoProvider:
    api = make_presto_client(**http_kwargs)
    tokens = TokenManager(
        session=session,
        api=api,
        cipher=cipher if cipher is not None else default_cipher(),
        cache=cache if cache is not None else default_token_cache,
    )
    return PrestoProvider(api=api, tokens=tokens)
