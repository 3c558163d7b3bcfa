from __future__ import annotations

import logging
from typing import Callable, List

from fastapi import APIRouter, Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from growthtracker.auth.permissions import AuthContext, get_auth_context
from growthtracker.core.config import (
    CHAT_ERROR_FRAMES,
    CHAT_HISTORY_DEFAULT_LIMIT,
    CHAT_HISTORY_MAX_LIMIT,
    CHAT_REQUIRE_TOKEN,
)
from growthtracker.core.db import SessionLocal
from growthtracker.models.chat import ChatMessageOut
from growthtracker.services.chat_dispatcher import BroadcastDispatcher
from growthtracker.services.chat_session import ChatSession, LiveConnection
from growthtracker.services.chat_store import MessageLog
from growthtracker.services.connection_registry import ConnectionRegistry

logger = logging.getLogger("growth.api.chat")

router = APIRouter()      # /api/chat
ws_router = APIRouter()   # /ws/chat

WS_PATH = "/ws/chat"


def install(
    app: FastAPI,
    session_factory: Callable[[], Session] = SessionLocal,
    *,
    require_token: bool = CHAT_REQUIRE_TOKEN,
    error_frames: bool = CHAT_ERROR_FRAMES,
) -> ConnectionRegistry:
    """Attach a fresh registry / message log / dispatcher to ``app.state``."""
    registry = ConnectionRegistry()
    message_log = MessageLog(session_factory)
    app.state.chat_registry = registry
    app.state.chat_log = message_log
    app.state.chat_dispatcher = BroadcastDispatcher(registry, message_log, error_frames=error_frames)
    app.state.chat_require_token = require_token
    logger.info("chat installed require_token=%s error_frames=%s", require_token, error_frames)
    return registry


# ------------------------------ Streaming ------------------------------------

@ws_router.websocket(WS_PATH)
async def chat_socket(websocket: WebSocket):
    await websocket.accept()
    state = websocket.app.state
    session = ChatSession(
        LiveConnection(websocket),
        state.chat_registry,
        state.chat_dispatcher,
        require_token=state.chat_require_token,
    )
    logger.info("WS connect client=%s", websocket.client)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await session.handle(raw)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        # Transport failure on this channel only
        logger.warning("WS error user=%s: %r", session.conn.user_id, e)
    finally:
        session.close()
        logger.info("WS disconnect user=%s", session.conn.user_id)


# ------------------------------ History --------------------------------------

@router.get("/messages", response_model=List[ChatMessageOut], name="chat_messages")
def chat_messages(
    request: Request,
    limit: int = Query(CHAT_HISTORY_DEFAULT_LIMIT, ge=1, le=CHAT_HISTORY_MAX_LIMIT),
    auth: AuthContext = Depends(get_auth_context),
):
    """Most recent messages, newest first."""
    items = request.app.state.chat_log.recent(limit)
    logger.info("GET /api/chat/messages user=%s limit=%d -> %d", auth.user_id, limit, len(items))
    return items
