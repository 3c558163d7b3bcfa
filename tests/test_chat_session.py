import asyncio
import json

import pytest

from growthtracker.auth.security import create_token
from growthtracker.services.chat_dispatcher import BroadcastDispatcher
from growthtracker.services.chat_session import ChatSession, LiveConnection, SessionState
from growthtracker.services.connection_registry import ConnectionRegistry

from fakes import FakeChannel, FakeLog

AUTH_ALICE = json.dumps({"type": "auth", "userId": "u1", "username": "alice"})
HI = json.dumps({"type": "message", "content": "hi"})


def _session(registry=None, log=None, **kw):
    registry = registry or ConnectionRegistry()
    log = log or FakeLog()
    channel = FakeChannel()
    session = ChatSession(
        LiveConnection(channel), registry, BroadcastDispatcher(registry, log), **kw
    )
    return session, channel, registry, log


def _frames(channel):
    return [json.loads(s) for s in channel.sent]


def test_auth_admits_and_acknowledges_once():
    session, channel, registry, _ = _session()
    assert session.state is SessionState.UNAUTHENTICATED

    asyncio.run(session.handle(AUTH_ALICE))

    assert session.state is SessionState.AUTHENTICATED
    assert (session.conn.user_id, session.conn.username) == ("u1", "alice")
    assert len(registry) == 1
    assert _frames(channel) == [{"type": "connected", "message": "Connected to chat"}]


def test_second_auth_frame_is_ignored():
    session, channel, registry, _ = _session()

    async def run():
        await session.handle(AUTH_ALICE)
        await session.handle(json.dumps({"type": "auth", "userId": "u9", "username": "mallory"}))

    asyncio.run(run())
    assert session.conn.user_id == "u1"
    assert len(registry) == 1
    assert len(channel.sent) == 1


def test_message_before_auth_is_dropped_and_auth_still_works():
    session, channel, registry, log = _session()

    async def run():
        await session.handle(HI)
        assert log.rows == []
        assert channel.sent == []
        assert len(registry) == 0
        await session.handle(AUTH_ALICE)

    asyncio.run(run())
    assert session.state is SessionState.AUTHENTICATED
    assert _frames(channel)[0]["type"] == "connected"


@pytest.mark.parametrize("raw", [
    "not json",
    b"\xff\xfe",
    "[1, 2, 3]",
    json.dumps({"type": "typing"}),
    json.dumps({"content": "no type"}),
    json.dumps({"type": "message"}),
    json.dumps({"type": "message", "content": ""}),
    json.dumps({"type": "auth", "userId": "u1"}),
])
def test_malformed_frames_are_discarded(raw):
    session, channel, registry, log = _session()

    async def run():
        await session.handle(raw)
        await session.handle(AUTH_ALICE)
        await session.handle(raw)

    asyncio.run(run())
    assert session.state is SessionState.AUTHENTICATED
    assert log.rows == []
    assert len(channel.sent) == 1


def test_authenticated_message_is_persisted_and_echoed_to_sender():
    session, channel, registry, log = _session()

    async def run():
        await session.handle(AUTH_ALICE)
        await session.handle(HI)

    asyncio.run(run())
    assert len(log.rows) == 1
    frames = _frames(channel)
    assert [f["type"] for f in frames] == ["connected", "message"]
    assert frames[1]["data"]["userId"] == "u1"
    assert frames[1]["data"]["content"] == "hi"


def test_close_unregisters_in_any_state():
    session, _, registry, _ = _session()
    session.close()  # never authenticated
    assert len(registry) == 0

    session, _, registry, _ = _session()
    asyncio.run(session.handle(AUTH_ALICE))
    session.close()
    session.close()
    assert len(registry) == 0
    assert session.conn.closed


def test_token_identity_overrides_asserted_fields():
    session, _, registry, _ = _session()
    token = create_token("real-id", "realname", "real@example.com")
    frame = json.dumps({"type": "auth", "userId": "u1", "username": "alice", "token": token})

    asyncio.run(session.handle(frame))
    assert (session.conn.user_id, session.conn.username) == ("real-id", "realname")
    assert len(registry) == 1


def test_invalid_token_leaves_connection_unauthenticated():
    session, channel, registry, _ = _session()
    frame = json.dumps({"type": "auth", "userId": "u1", "username": "alice", "token": "garbage"})

    asyncio.run(session.handle(frame))
    assert session.state is SessionState.UNAUTHENTICATED
    assert len(registry) == 0
    assert channel.sent == []


def test_require_token_rejects_asserted_identity():
    session, _, registry, _ = _session(require_token=True)

    async def run():
        await session.handle(AUTH_ALICE)
        assert session.state is SessionState.UNAUTHENTICATED
        token = create_token("u1", "alice", "alice@example.com")
        await session.handle(json.dumps({"type": "auth", "token": token}))

    asyncio.run(run())
    assert session.state is SessionState.AUTHENTICATED
    assert len(registry) == 1


def test_live_connection_identity_is_all_or_nothing():
    conn = LiveConnection(FakeChannel())
    with pytest.raises(ValueError):
        conn.authenticate("u1", "")
    assert conn.user_id is None and conn.username is None
    conn.authenticate("u1", "alice")
    with pytest.raises(RuntimeError):
        conn.authenticate("u2", "bob")
