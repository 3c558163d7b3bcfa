from datetime import datetime, timedelta

from growthtracker.main import app

CONNECTED = {"type": "connected", "message": "Connected to chat"}


def _auth(ws, user_id, username):
    ws.send_json({"type": "auth", "userId": user_id, "username": username})
    assert ws.receive_json() == CONNECTED


def test_message_is_broadcast_to_both_clients_exactly_once(client):
    with client.websocket_connect("/ws/chat") as a, client.websocket_connect("/ws/chat") as b:
        _auth(a, "u1", "alice")
        _auth(b, "u2", "bob")

        a.send_json({"type": "message", "content": "hi"})
        got_a = a.receive_json()
        got_b = b.receive_json()

        assert got_a == got_b
        assert got_a["type"] == "message"
        data = got_a["data"]
        assert {k: data[k] for k in ("userId", "username", "content")} == {
            "userId": "u1", "username": "alice", "content": "hi",
        }
        assert data["id"]
        assert datetime.fromisoformat(data["createdAt"]).utcoffset() == timedelta(0)

        # The next frame each side sees is the next message, not a duplicate
        b.send_json({"type": "message", "content": "hey"})
        assert a.receive_json()["data"]["content"] == "hey"
        assert b.receive_json()["data"]["content"] == "hey"

    assert app.state.chat_log.count() == 2


def test_message_before_auth_is_not_persisted(client):
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_json({"type": "message", "content": "hi"})
        ws.send_text("{not json")
        _auth(ws, "u1", "alice")
        assert len(app.state.chat_registry) == 1

    assert app.state.chat_log.count() == 0


def test_unauthenticated_connection_receives_no_broadcast(client):
    with client.websocket_connect("/ws/chat") as a, \
            client.websocket_connect("/ws/chat") as b, \
            client.websocket_connect("/ws/chat") as lurker:
        _auth(a, "u1", "alice")
        _auth(b, "u2", "bob")
        assert len(app.state.chat_registry) == 2

        a.send_json({"type": "message", "content": "hi"})
        assert a.receive_json()["type"] == "message"
        assert b.receive_json()["type"] == "message"

        # First thing the lurker ever sees is its own ack
        _auth(lurker, "u3", "carol")


def test_closing_a_connection_removes_it_from_the_registry(client):
    registry = app.state.chat_registry
    with client.websocket_connect("/ws/chat") as a:
        _auth(a, "u1", "alice")
        with client.websocket_connect("/ws/chat") as b:
            _auth(b, "u2", "bob")
            assert len(registry) == 2
        assert len(registry) == 1

        a.send_json({"type": "message", "content": "anyone?"})
        assert a.receive_json()["data"]["content"] == "anyone?"

    assert len(registry) == 0


def test_same_user_in_two_tabs_gets_two_copies(client):
    with client.websocket_connect("/ws/chat") as tab1, client.websocket_connect("/ws/chat") as tab2:
        _auth(tab1, "u1", "alice")
        _auth(tab2, "u1", "alice")
        assert app.state.chat_registry.stats() == {"connections": 2, "users": 1}

        tab1.send_json({"type": "message", "content": "hi"})
        assert tab1.receive_json()["data"]["content"] == "hi"
        assert tab2.receive_json()["data"]["content"] == "hi"


def test_signed_in_user_can_authenticate_with_token(client, make_user):
    headers, user = make_user("alice")
    token = headers["Authorization"].split(" ", 1)[1]
    with client.websocket_connect("/ws/chat") as ws:
        ws.send_json({"type": "auth", "token": token})
        assert ws.receive_json() == CONNECTED
        ws.send_json({"type": "message", "content": "hi"})
        data = ws.receive_json()["data"]
        assert data["userId"] == user["id"]
        assert data["username"] == "alice"
