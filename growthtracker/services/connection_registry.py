# growthtracker/services/connection_registry.py
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Set, Tuple

if TYPE_CHECKING:
    from growthtracker.services.chat_session import LiveConnection

logger = logging.getLogger("growth.chat.registry")


class ConnectionRegistry:
    """
    Live, authenticated chat connections of this process.

    Membership is by object identity, so one user with several tabs holds
    several entries. Readers get a tuple copy from ``snapshot()``; fan-out
    never iterates the live set.
    """

    def __init__(self) -> None:
        self._members: Set["LiveConnection"] = set()
        self._lock = threading.Lock()

    def register(self, conn: "LiveConnection") -> None:
        with self._lock:
            self._members.add(conn)
            total = len(self._members)
        logger.info("registry: register user=%s total=%d", conn.user_id, total)

    def unregister(self, conn: "LiveConnection") -> bool:
        """Remove ``conn``; returns False (and does nothing) if it was absent."""
        with self._lock:
            if conn not in self._members:
                return False
            self._members.discard(conn)
            total = len(self._members)
        logger.info("registry: unregister user=%s total=%d", conn.user_id, total)
        return True

    def snapshot(self) -> Tuple["LiveConnection", ...]:
        with self._lock:
            return tuple(self._members)

    def clear(self) -> int:
        with self._lock:
            n = len(self._members)
            self._members.clear()
        if n:
            logger.info("registry: drained %d connection(s)", n)
        return n

    def __contains__(self, conn: object) -> bool:
        with self._lock:
            return conn in self._members

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def stats(self) -> dict:
        with self._lock:
            users = {c.user_id for c in self._members}
            return {"connections": len(self._members), "users": len(users)}
