# growthtracker/services/chat_session.py
"""
Per-connection chat protocol.

A connection starts UNAUTHENTICATED. The first acceptable auth frame fills in
its identity, registers it for broadcasts and acknowledges with a
``connected`` frame; from then on it is AUTHENTICATED until the channel
closes. Chat frames before that point are dropped, malformed frames are
logged and dropped, and neither closes the channel.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union

from growthtracker.auth.security import verify_token
from growthtracker.models.chat import AuthFrame, FrameError, MessageFrame, connected_frame, parse_frame
from growthtracker.services.chat_dispatcher import BroadcastDispatcher
from growthtracker.services.connection_registry import ConnectionRegistry

logger = logging.getLogger("growth.chat.session")

MAX_LOGGED_FRAME = 200


class Channel(Protocol):
    async def send_text(self, data: str) -> None: ...


class SessionState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class LiveConnection:
    """One open streaming channel plus the identity it authenticated as."""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.user_id: Optional[str] = None
        self.username: Optional[str] = None
        self.closed = False

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    def authenticate(self, user_id: str, username: str) -> None:
        if not user_id or not username:
            raise ValueError("identity needs both user id and username")
        if self.authenticated:
            raise RuntimeError("connection already authenticated")
        # Both fields in one step: never half-authenticated
        self.user_id, self.username = user_id, username

    async def send_text(self, data: str) -> None:
        await self.channel.send_text(data)

    async def send_json(self, frame: Dict[str, Any]) -> None:
        await self.channel.send_text(json.dumps(frame, ensure_ascii=False))

    def __repr__(self) -> str:
        return f"<LiveConnection user={self.user_id!r} closed={self.closed}>"


TokenVerifier = Callable[[str], Optional[dict]]


class ChatSession:
    def __init__(
        self,
        conn: LiveConnection,
        registry: ConnectionRegistry,
        dispatcher: BroadcastDispatcher,
        *,
        require_token: bool = False,
        token_verifier: TokenVerifier = verify_token,
    ):
        self.conn = conn
        self.registry = registry
        self.dispatcher = dispatcher
        self.require_token = require_token
        self._verify = token_verifier

    @property
    def state(self) -> SessionState:
        if self.conn.authenticated:
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    async def handle(self, raw: Union[str, bytes]) -> None:
        """Process one inbound frame. Only transport errors propagate."""
        try:
            frame = parse_frame(raw)
        except FrameError as e:
            logger.warning(
                "chat: malformed frame user=%s raw=%r err=%s",
                self.conn.user_id, _clip(raw), _first_line(str(e)),
            )
            return

        if isinstance(frame, AuthFrame):
            await self._on_auth(frame)
        elif isinstance(frame, MessageFrame):
            await self._on_message(frame)

    async def _on_auth(self, frame: AuthFrame) -> None:
        if self.state is SessionState.AUTHENTICATED:
            logger.debug("chat: auth frame ignored, already authenticated user=%s", self.conn.user_id)
            return

        identity = self._resolve_identity(frame)
        if identity is None:
            return
        user_id, username, source = identity

        self.conn.authenticate(user_id, username)
        self.registry.register(self.conn)
        logger.info("chat: admitted user=%s name=%s via=%s", user_id, username, source)
        await self.conn.send_json(connected_frame())

    def _resolve_identity(self, frame: AuthFrame) -> Optional[Tuple[str, str, str]]:
        if frame.token:
            claims = self._verify(frame.token)
            if not claims:
                logger.warning("chat: auth rejected, invalid token")
                return None
            return str(claims["id"]), str(claims["username"]), "token"
        if self.require_token:
            logger.warning("chat: auth rejected, token required (asserted user=%s)", frame.user_id)
            return None
        return frame.user_id, frame.username, "asserted"

    async def _on_message(self, frame: MessageFrame) -> None:
        if self.state is not SessionState.AUTHENTICATED:
            logger.debug("chat: message before auth dropped len=%d", len(frame.content))
            return
        await self.dispatcher.dispatch(
            self.conn.user_id, self.conn.username, frame.content, sender=self.conn
        )

    def close(self) -> None:
        """Idempotent; safe from finally blocks and cancellation paths."""
        self.conn.closed = True
        self.registry.unregister(self.conn)


def _clip(raw: Union[str, bytes]) -> Union[str, bytes]:
    return raw[:MAX_LOGGED_FRAME]


def _first_line(s: str) -> str:
    return s.splitlines()[0] if s else s
