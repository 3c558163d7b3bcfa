# growthtracker/services/chat_dispatcher.py
from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Optional

from starlette.concurrency import run_in_threadpool

from growthtracker.core.config import CHAT_SEND_TIMEOUT
from growthtracker.models.chat import ChatMessageOut, broadcast_frame, error_frame
from growthtracker.services.chat_store import MessageLog
from growthtracker.services.connection_registry import ConnectionRegistry

if TYPE_CHECKING:
    from growthtracker.services.chat_session import LiveConnection

logger = logging.getLogger("growth.chat.dispatcher")

SEND_FAILED_TEXT = "Message could not be saved"


class BroadcastDispatcher:
    """
    Write-then-broadcast: a message reaches connections only after the
    message log accepted it. Never raises for storage or delivery failures.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        message_log: MessageLog,
        *,
        error_frames: bool = False,
        send_timeout: Optional[float] = CHAT_SEND_TIMEOUT,
    ):
        self.registry = registry
        self.message_log = message_log
        self.error_frames = error_frames
        self.send_timeout = send_timeout

    async def dispatch(
        self,
        user_id: str,
        username: str,
        content: str,
        sender: Optional["LiveConnection"] = None,
    ) -> Optional[ChatMessageOut]:
        try:
            # SQLAlchemy session work is blocking
            msg = await run_in_threadpool(self.message_log.append, user_id, username, content)
        except Exception:
            logger.exception("dispatch: append failed user=%s, broadcast suppressed", user_id)
            if self.error_frames and sender is not None:
                await self._deliver(sender, json.dumps(error_frame(SEND_FAILED_TEXT)))
            return None

        text = json.dumps(broadcast_frame(msg), ensure_ascii=False)
        targets = [c for c in self.registry.snapshot() if not c.closed]
        results = await asyncio.gather(*(self._deliver(c, text) for c in targets))
        sent = sum(1 for ok in results if ok)

        logger.info("dispatch: id=%s user=%s targets=%d sent=%d", msg.id, user_id, len(targets), sent)
        return msg

    async def _deliver(self, conn: "LiveConnection", text: str) -> bool:
        if conn.closed:
            return False
        try:
            # A stalled peer must not hold up the sender's own receive loop
            await asyncio.wait_for(conn.send_text(text), self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("dispatch: delivery timed out user=%s after %ss (drop)", conn.user_id, self.send_timeout)
            return False
        except Exception as e:
            logger.warning("dispatch: delivery failed user=%s (drop): %r", conn.user_id, e)
            return False
