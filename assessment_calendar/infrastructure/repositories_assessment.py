# assessment_calendar/infrastructure/repositories_assessment.py
from __future__ import annotations

import builtins
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy.orm import Session

from .logging import log_database_operation as log_op
from .models import AssessmentORM
from .repositories_base import BaseRepository as GenericBaseRepository


class AssessmentRepo(GenericBaseRepository[AssessmentORM]):
    model = AssessmentORM

    def __init__(self, session: Session):
        super().__init__(session)

    # -------- Read --------

    @log_op("assessment.get")
    def get(self, id_: Any) -> AssessmentORM | None:
        return super().get(id_)

    @log_op("assessment.list")
    def list(
        self,
        *filters: Any,
        order_by: Iterable[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> builtins.list[AssessmentORM]:
        return super().list(*filters, order_by=order_by, limit=limit, offset=offset)

    @log_op("assessment.count")
    def count(self, *filters: Any) -> int:
        return super().count(*filters)

    # -------- Write --------

    @log_op("assessment.create")
    def create(self, **fields: Any) -> AssessmentORM:
        return super().create(**fields)

    @log_op("assessment.update")
    def update(self, obj: AssessmentORM, **fields: Any) -> AssessmentORM:
        return super().update(obj, **fields)

    @log_op("assessment.delete")
    def delete(self, obj: AssessmentORM) -> None:
        super().delete(obj)

    # -------- Custom helpers --------

    def list_all(
        self, order_by: Iterable[Any] | None = None
    ) -> builtins.list[AssessmentORM]:
        # Default ordering: submit_date ascending, id breaks ties
        if order_by is not None:
            return self.list(order_by=order_by)
        return self.list(order_by=[self.model.submit_date.asc(), self.model.id.asc()])

    def list_for_date(self, day: date) -> builtins.list[AssessmentORM]:
        """Assessments whose submit_date falls on ``day`` (half-open day range)."""
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        return self.list(
            self.model.submit_date >= start,
            self.model.submit_date < end,
            order_by=[self.model.submit_date.asc(), self.model.id.asc()],
        )
