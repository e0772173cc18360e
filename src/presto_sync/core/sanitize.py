from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

REDACTED = "***REDACTED***"

_ENDPOINT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"token=[^&]+", re.I), f"token={REDACTED}"),
    (re.compile(r"key=[^&]+", re.I), f"key={REDACTED}"),
    (re.compile(r"auth=[^&]+", re.I), f"auth={REDACTED}"),
    (re.compile(r"password=[^&]+", re.I), f"password={REDACTED}"),
    (re.compile(r"Bearer\s+\S+", re.I), f"Bearer {REDACTED}"),
    (re.compile(r"idToken=[^&]+", re.I), f"idToken={REDACTED}"),
)

_JWT = re.compile(r"eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+")

_ERROR_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (_JWT, "***JWT_REDACTED***"),
    (re.compile(r"Bearer\s+\S+", re.I), f"Bearer {REDACTED}"),
    (re.compile(r"password['\":\s]+[^\s,}]+", re.I), f"password: {REDACTED}"),
    (re.compile(r"token['\":\s]+[^\s,}]+", re.I), f"token: {REDACTED}"),
    (re.compile(r"authorization['\":\s]+[^\s,}]+", re.I), f"authorization: {REDACTED}"),
)

SENSITIVE_PARAM_KEYS: tuple[str, ...] = (
    "password",
    "token",
    "idtoken",
    "accesstoken",
    "refreshtoken",
    "credentials",
    "auth",
    "secret",
)


def sanitize_endpoint(url: str | None) -> str | None:
    if not url:
        return None
    for pattern, replacement in _ENDPOINT_PATTERNS:
        url = pattern.sub(replacement, url)
    return url


def sanitize_error(error: BaseException | str | None, *, max_len: int = 2000) -> str | None:
    if error is None:
        return None
    message = str(error).strip() if isinstance(error, str) else _describe(error)
    for pattern, replacement in _ERROR_PATTERNS:
        message = pattern.sub(replacement, message)
    if len(message) > max_len:
        return message[: max_len - 3] + "..."
    return message


def sanitize_params(params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if params is None:
        return None
    sanitized: dict[str, Any] = {}
    for key, value in params.items():
        lowered = str(key).lower()
        if any(s in lowered for s in SENSITIVE_PARAM_KEYS):
            sanitized[key] = REDACTED
        else:
            sanitized[key] = value
    return sanitized


def _describe(exc: BaseException) -> str:
    return str(exc).strip() or exc.__class__.__name__
