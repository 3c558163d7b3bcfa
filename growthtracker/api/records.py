# growthtracker/api/records.py
"""
CRUD endpoints for the journal sections. All routes require a bearer token
and only ever see the caller's own records.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from growthtracker.auth.permissions import AuthContext, get_auth_context
from growthtracker.core.db import get_db
from growthtracker.models import schemas
from growthtracker.models.schemas import naive_utc
from growthtracker.services import records
from growthtracker.services.records import RecordStore

logger = logging.getLogger("growth.api.records")

Check = Callable[[Dict[str, Any], Optional[Any]], None]


def build_router(
    prefix: str,
    tag: str,
    store: RecordStore,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
    out_model: Type[BaseModel],
    *,
    check: Optional[Check] = None,
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    def _get_or_404(db: Session, auth: AuthContext, record_id: str) -> Any:
        row = store.get_for(db, auth.user_id, record_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"{tag} not found")
        return row

    if store.date_range is not None:
        @router.get("", response_model=List[out_model])
        def list_records(
            start: Optional[datetime] = Query(None),
            end: Optional[datetime] = Query(None),
            auth: AuthContext = Depends(get_auth_context),
            db: Session = Depends(get_db),
        ):
            return store.list_for(db, auth.user_id, naive_utc(start), naive_utc(end))
    else:
        @router.get("", response_model=List[out_model])
        def list_records(
            auth: AuthContext = Depends(get_auth_context),
            db: Session = Depends(get_db),
        ):
            return store.list_for(db, auth.user_id)

    @router.post("", response_model=out_model, status_code=201)
    def create_record(
        payload: create_model,
        auth: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        data = payload.model_dump()
        if check:
            check(data, None)
        return store.create(db, auth.user_id, data)

    @router.get("/{record_id}", response_model=out_model)
    def get_record(
        record_id: str,
        auth: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        return _get_or_404(db, auth, record_id)

    @router.put("/{record_id}", response_model=out_model)
    def update_record(
        record_id: str,
        payload: update_model,
        auth: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        row = _get_or_404(db, auth, record_id)
        data = payload.model_dump(exclude_unset=True)
        if check:
            check(data, row)
        return store.update(db, row, data)

    @router.delete("/{record_id}", status_code=204)
    def delete_record(
        record_id: str,
        auth: AuthContext = Depends(get_auth_context),
        db: Session = Depends(get_db),
    ):
        row = _get_or_404(db, auth, record_id)
        store.delete(db, row)
        return Response(status_code=204)

    return router


def _check_calendar(data: Dict[str, Any], row: Optional[Any]) -> None:
    start = data.get("start_time") or getattr(row, "start_time", None)
    end = data.get("end_time") or getattr(row, "end_time", None)
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="endTime must not be before startTime")


routers = [
    build_router("/api/diary", "Diary", records.diary,
                 schemas.DiaryEntryCreate, schemas.DiaryEntryUpdate, schemas.DiaryEntryOut),
    build_router("/api/stories", "Stories", records.stories,
                 schemas.StoryCreate, schemas.StoryUpdate, schemas.StoryOut),
    build_router("/api/mistakes", "Mistakes", records.mistakes,
                 schemas.MistakeCreate, schemas.MistakeUpdate, schemas.MistakeOut),
    build_router("/api/achievements", "Achievements", records.achievements,
                 schemas.AchievementCreate, schemas.AchievementUpdate, schemas.AchievementOut),
    build_router("/api/study-sessions", "Study sessions", records.study_sessions,
                 schemas.StudySessionCreate, schemas.StudySessionUpdate, schemas.StudySessionOut),
    build_router("/api/people", "People", records.people,
                 schemas.PersonCreate, schemas.PersonUpdate, schemas.PersonOut),
    build_router("/api/calendar", "Calendar", records.calendar,
                 schemas.CalendarEventCreate, schemas.CalendarEventUpdate, schemas.CalendarEventOut,
                 check=_check_calendar),
]
