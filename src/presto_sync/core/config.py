from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # DB
    database_url: str = Field(
        default="sqlite+pysqlite:///./presto_sync.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = False

    # presto
    presto_base_url: str = "https://gameday-api.prestosports.com/api"
    presto_timeout_s: float = 30.0
    presto_min_request_interval_s: float = 1.0
    presto_max_retries: int = 1
    presto_retry_base_delay_s: float = 1.0
    presto_refresh_token_ttl_days: int = 30

    # tokens are treated as expired this many seconds before their real expiry
    token_refresh_margin_s: int = 300

    diagnostics_buffer_size: int = 100

    # secrets
    encryption_key: str | None = Field(
        default=None, validation_alias="ENCRYPTION_KEY", repr=False
    )

    # "today" for live stats is evaluated in this zone
    local_timezone: str = "America/Chicago"

    log_level: str = "INFO"

    # -----------------------------
    # Required-key helpers
    # -----------------------------

    def require_encryption_key(self) -> str:
        if not self.encryption_key:
            raise RuntimeError(
                "ENCRYPTION_KEY is not set. Set it in the environment or .env file."
            )
        return self.encryption_key


settings = Settings()
