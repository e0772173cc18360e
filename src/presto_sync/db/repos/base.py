from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from presto_sync.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    def add(self, obj: ModelT, *, flush: bool = True) -> ModelT:
        self.session.add(obj)
        if flush:
            self.session.flush()  # assigns PKs, etc.
        return obj

    def get(self, id_: Any) -> ModelT | None:
        return self.session.get(self.model, id_)

    def first_where(self, *predicates: ColumnElement[bool]) -> ModelT | None:
        stmt = select(self.model).where(*predicates).limit(1)
        return self.session.execute(stmt).scalars().first()

    def one_where(self, *predicates: ColumnElement[bool]) -> ModelT:
        stmt = select(self.model).where(*predicates)
        return self.session.execute(stmt).scalars().one()

    def all_where(self, *predicates: ColumnElement[bool]) -> list[ModelT]:
        stmt = select(self.model).where(*predicates)
        return list(self.session.execute(stmt).scalars().all())

    def delete(self, obj: ModelT, *, flush: bool = True) -> None:
        self.session.delete(obj)
        if flush:
            self.session.flush()

    def patch(self, obj: ModelT, changes: Mapping[str, Any], *, flush: bool = True) -> ModelT:
        """Set the non-None values in `changes`; None means "leave as is"."""
        for k, v in changes.items():
            if v is None:
                continue
            setattr(obj, k, v)
        if flush:
            self.session.flush()
        return obj

    def assign(self, obj: ModelT, values: Mapping[str, Any], *, flush: bool = True) -> ModelT:
        """Set every value in `values`, None included."""
        for k, v in values.items():
            setattr(obj, k, v)
        if flush:
            self.session.flush()
        return obj

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class ExternalIdRepository(BaseRepository[ModelT]):
    """Rows synced from a provider, keyed by (team_id, external_id).

    Rows with a NULL external_id are local-only and never matched here.
    """

    def find_by_external_id(self, team_id: int, external_id: str) -> ModelT | None:
        model: Any = self.model
        return self.first_where(model.team_id == team_id, model.external_id == external_id)

    def list_synced(self, team_id: int) -> list[ModelT]:
        model: Any = self.model
        return self.all_where(model.team_id == team_id, model.external_id.is_not(None))

    def upsert_by_external_id(
        self,
        team_id: int,
        external_id: str,
        values: Mapping[str, Any],
        *,
        on_create: Mapping[str, Any] | None = None,
        flush: bool = True,
    ) -> tuple[ModelT, bool]:
        """Create or overwrite the row; returns (row, created).

        Every key in `values` is written on update, so a None clears the column.
        `on_create` values are only written when the row is new.
        """
        if not external_id:
            raise ValueError("external_id is required for upsert")

        existing = self.find_by_external_id(team_id, external_id)
        if existing is None:
            fields = {k: v for k, v in {**(on_create or {}), **values}.items() if v is not None}
            obj = self.model(team_id=team_id, external_id=external_id, **fields)
            return self.add(obj, flush=flush), True

        return self.assign(existing, values, flush=flush), False
