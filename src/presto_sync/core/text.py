from __future__ import annotations

import re

_whitespace_re = re.compile(r"\s+")
_non_alnum_re = re.compile(r"[^a-z0-9\s]")


def normalize_name(value: str) -> str:
    """Normalize a team or player name for loose matching across sources."""

    v = value.strip().lower()
    v = _non_alnum_re.sub(" ", v)
    v = _whitespace_re.sub(" ", v)
    return v.strip()


def name_contains(haystack: str | None, needle: str | None) -> bool:
    if not haystack or not needle:
        return False
    n = normalize_name(needle)
    if not n:
        return False
    return n in normalize_name(haystack)
