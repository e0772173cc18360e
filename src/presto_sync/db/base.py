from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedColumn, mapped_column

JsonType = JSON().with_variant(JSONB, "postgresql")


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def enum_type(enum_cls: type[StrEnum], name: str) -> sa.Enum:
    """Enum column type persisted by value (e.g. "presto"), not member name."""

    return sa.Enum(
        enum_cls,
        name=name,
        values_callable=lambda cls: [e.value for e in cls],
        validate_strings=True,
    )


# Column shapes shared by the stat tables.
StatCount = Annotated[
    int, mapped_column(Integer, nullable=False, default=0, server_default="0")
]
StatFlag = Annotated[
    bool, mapped_column(Boolean, nullable=False, default=False, server_default="false")
]


def rate_column(precision: int, scale: int) -> MappedColumn[Any]:
    return mapped_column(Numeric(precision, scale, asdecimal=False), nullable=True)


def innings_column(precision: int = 5) -> MappedColumn[Any]:
    return mapped_column(
        Numeric(precision, 1, asdecimal=False), nullable=False, default=0, server_default="0"
    )
