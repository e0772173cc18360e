from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ProviderError(RuntimeError):
    """Base exception for provider-related failures."""


class NotConfiguredError(ProviderError):
    """Team has no provider ids or no active credential."""


class AuthenticationFailedError(ProviderError):
    """Provider rejected the stored username/password."""


class SyncAlreadyRunningError(ProviderError):
    """Another sync for the same team is in progress in this process."""


class ProviderRequestError(ProviderError):
    """HTTP/network/transport layer failures (timeouts, connection errors, non-2xx, etc.).

    `status` is None for network errors; `body` holds the parsed response body
    (JSON value or raw text) when one was received.
    """

    def __init__(self, message: str, *, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ProviderTransientError(ProviderRequestError):
    """Failure the transport retries (403/429/network) before giving up."""


class ProviderRateLimited(ProviderTransientError):
    """Provider throttled the request (HTTP 429)."""


class ProviderForbidden(ProviderTransientError):
    """HTTP 403 without a bot-challenge body."""


class ProviderBotChallenge(ProviderForbidden):
    """HTTP 403 whose body is an anti-automation challenge page."""


class ProviderNotFound(ProviderRequestError):
    """HTTP 404; callers usually read it as "no data yet"."""


class ProviderAuthExpired(ProviderRequestError):
    """HTTP 401; the bearer token was rejected."""


class ProviderResponseError(ProviderError):
    """Provider returned a well-formed response with an unexpected shape."""


# Not frozen: contextlib assigns __traceback__ on exceptions leaving a `with` block.
@dataclass(eq=False)
class ProviderMappingError(ProviderError):
    """Mapping/extraction failed due to unexpected schema or values."""
    message: str
    context: dict[str, object] | None = None

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} | context={self.context}"
