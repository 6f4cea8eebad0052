# assessment_calendar/infrastructure/repositories_base.py
from __future__ import annotations

import builtins
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Lightweight generic repository with single-row CRUD and list helpers.
    - Writes flush but never commit; the caller owns the transaction.
    - Entity repos override methods to add logging decorators.
    """

    model: type[T]  # must be set by subclasses

    def __init__(self, session: Session):
        if getattr(self, "model", None) is None:
            raise ValueError(f"{self.__class__.__name__}.model must be set to an ORM class.")
        self.s = session

    # ---------- Read ----------
    def get(self, id_: Any) -> T | None:
        return self.s.get(self.model, id_)

    def list(
        self,
        *filters: Any,
        order_by: Iterable[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> builtins.list[T]:
        q = self.s.query(self.model)
        for f in filters:
            q = q.filter(f)
        if order_by:
            for ob in order_by:
                q = q.order_by(ob)
        if offset:
            q = q.offset(offset)
        if limit:
            q = q.limit(limit)
        return list(q.all())

    def count(self, *filters: Any) -> int:
        q = self.s.query(self.model)
        for f in filters:
            q = q.filter(f)
        return int(q.count())

    # ---------- Write ----------
    def create(self, **fields: Any) -> T:
        obj = self.model(**fields)
        self.s.add(obj)
        self.s.flush()  # assigns the primary key without committing
        return obj

    def update(self, obj: T, **fields: Any) -> T:
        for k, v in fields.items():
            setattr(obj, k, v)
        self.s.flush()
        return obj

    def delete(self, obj: T) -> None:
        self.s.delete(obj)
        self.s.flush()
