# growthtracker/services/chat_store.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from growthtracker.models.chat import ChatMessageOut
from growthtracker.models.orm import ChatMessage, new_id, utcnow

logger = logging.getLogger("growth.chat_store")

_TICK = timedelta(microseconds=1)


class MessageLog:
    """
    Append-only chat message log backed by the ``chat_messages`` table.

    Timestamps are assigned here and are strictly increasing within the
    process, so newest-first ordering by ``created_at`` is total even when the
    wall clock stalls or steps back.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._lock = threading.RLock()
        self._last_ts: Optional[datetime] = None

    def _next_ts(self, db: Session) -> datetime:
        if self._last_ts is None:
            self._last_ts = db.execute(select(func.max(ChatMessage.created_at))).scalar()
        now = utcnow()
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + _TICK
        self._last_ts = now
        return now

    def append(self, user_id: str, username: str, content: str) -> ChatMessageOut:
        """Insert one message. Raises on any storage failure."""
        if not user_id or not username or not content:
            raise ValueError("invalid chat message")

        db = self._session_factory()
        try:
            # Serialize timestamp assignment + insert so commit order matches ts order
            with self._lock:
                row = ChatMessage(
                    id=new_id(),
                    user_id=user_id,
                    username=username,
                    content=content,
                    created_at=self._next_ts(db),
                )
                db.add(row)
                db.commit()
            out = ChatMessageOut.model_validate(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        logger.info("WRITE chat_messages id=%s user=%s len=%d", out.id, user_id, len(content))
        return out

    def recent(self, limit: int = 50) -> List[ChatMessageOut]:
        """Most recent ``limit`` messages, newest first."""
        if limit <= 0:
            return []
        db = self._session_factory()
        try:
            rows = db.execute(
                select(ChatMessage).order_by(ChatMessage.created_at.desc()).limit(limit)
            ).scalars().all()
            return [ChatMessageOut.model_validate(r) for r in rows]
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.execute(select(func.count()).select_from(ChatMessage)).scalar() or 0
        finally:
            db.close()
