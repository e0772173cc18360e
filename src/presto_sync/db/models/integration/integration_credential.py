from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from presto_sync.db.base import Base, JsonType, TimestampMixin, enum_type
from presto_sync.db.enums import CredentialTypeEnum, ProviderEnum


class IntegrationCredential(Base, TimestampMixin):
    """Encrypted upstream credentials and tokens for one (team, provider) pair.

    All secret columns hold ciphertext produced by a `SecretCipher`; nothing in
    this table is readable without the encryption key.
    """

    __tablename__ = "integration_credentials"

    id: Mapped[int] = mapped_column(primary_key=True)

    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    provider: Mapped[ProviderEnum] = mapped_column(
        enum_type(ProviderEnum, "provider_enum"), nullable=False
    )
    credential_type: Mapped[CredentialTypeEnum] = mapped_column(
        enum_type(CredentialTypeEnum, "credential_type_enum"),
        nullable=False,
        default=CredentialTypeEnum.BASIC,
    )

    credentials_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    access_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    refresh_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_refreshed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_refresh_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    # Provider ids, e.g. {"team_id": "...", "season_id": "..."}.
    config: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)

    team: Mapped[Team] = relationship(back_populates="credentials")

    __table_args__ = (
        UniqueConstraint("team_id", "provider", name="uq_integration_credentials_team_provider"),
        Index("ix_integration_credentials_provider_active", "provider", "is_active"),
        Index("ix_integration_credentials_token_expires_at", "token_expires_at"),
    )


from presto_sync.db.models.core.team import Team  # noqa: E402
