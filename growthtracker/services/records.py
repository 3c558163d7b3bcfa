# growthtracker/services/records.py
"""
Per-user record stores for the journal sections (diary, stories, mistakes,
achievements, study sessions, people, calendar).

Every query is scoped by ``user_id``; a record owned by somebody else is
indistinguishable from a missing one.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from sqlalchemy.orm import Session

from growthtracker.core.db import Base
from growthtracker.models.orm import (
    Achievement,
    CalendarEvent,
    DiaryEntry,
    Mistake,
    Person,
    Story,
    StudySession,
)

logger = logging.getLogger("growth.records")

RangeFilter = Callable[[Optional[datetime], Optional[datetime]], List[Any]]


class RecordStore:
    def __init__(
        self,
        model: Type[Base],
        *,
        order_by: Sequence[Any],
        renames: Optional[Dict[str, str]] = None,
        date_range: Optional[RangeFilter] = None,
    ):
        self.model = model
        self.order_by = list(order_by)
        self.renames = renames or {}
        self.date_range = date_range

    @property
    def name(self) -> str:
        return self.model.__tablename__

    def _columns(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {self.renames.get(k, k): v for k, v in data.items()}

    def _nullable(self, attr: str) -> bool:
        prop = self.model.__mapper__.get_property(attr)
        return all(c.nullable for c in prop.columns)

    def list_for(
        self,
        db: Session,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Any]:
        q = db.query(self.model).filter(self.model.user_id == user_id)
        if self.date_range is not None and (start or end):
            q = q.filter(*self.date_range(start, end))
        return q.order_by(*self.order_by).all()

    def get_for(self, db: Session, user_id: str, record_id: str) -> Optional[Any]:
        return (
            db.query(self.model)
            .filter(self.model.id == record_id, self.model.user_id == user_id)
            .first()
        )

    def create(self, db: Session, user_id: str, data: Dict[str, Any]) -> Any:
        # None means "use the column default" on create
        values = {k: v for k, v in self._columns(data).items() if v is not None}
        row = self.model(user_id=user_id, **values)
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("WRITE %s create id=%s user=%s", self.name, row.id, user_id)
        return row

    def update(self, db: Session, row: Any, data: Dict[str, Any]) -> Any:
        for attr, value in self._columns(data).items():
            if value is None and not self._nullable(attr):
                continue
            setattr(row, attr, value)
        db.commit()
        db.refresh(row)
        logger.info("WRITE %s update id=%s fields=%s", self.name, row.id, sorted(data))
        return row

    def delete(self, db: Session, row: Any) -> None:
        db.delete(row)
        db.commit()
        logger.info("WRITE %s delete id=%s", self.name, row.id)


# ------------------------------ Date ranges ----------------------------------

def _study_range(start: Optional[datetime], end: Optional[datetime]) -> List[Any]:
    out = []
    if start:
        out.append(StudySession.date >= start)
    if end:
        out.append(StudySession.date <= end)
    return out


def _calendar_range(start: Optional[datetime], end: Optional[datetime]) -> List[Any]:
    # Events fully inside the window
    out = []
    if start:
        out.append(CalendarEvent.start_time >= start)
    if end:
        out.append(CalendarEvent.end_time <= end)
    return out


# ------------------------------ Stores ---------------------------------------

diary = RecordStore(DiaryEntry, order_by=[DiaryEntry.date.desc(), DiaryEntry.created_at.desc()])
stories = RecordStore(Story, order_by=[Story.updated_at.desc()])
mistakes = RecordStore(Mistake, order_by=[Mistake.date.desc(), Mistake.created_at.desc()])
achievements = RecordStore(Achievement, order_by=[Achievement.date.desc(), Achievement.created_at.desc()])
study_sessions = RecordStore(
    StudySession,
    order_by=[StudySession.date.desc(), StudySession.created_at.desc()],
    date_range=_study_range,
)
people = RecordStore(
    Person,
    order_by=[Person.updated_at.desc()],
    renames={"relationship": "relationship_"},
)
calendar = RecordStore(
    CalendarEvent,
    order_by=[CalendarEvent.start_time.asc()],
    date_range=_calendar_range,
)
