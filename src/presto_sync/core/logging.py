from __future__ import annotations

import logging

from presto_sync.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for CLI entry points."""

    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO; the transport keeps its own request log.
    logging.getLogger("httpx").setLevel(logging.WARNING)
