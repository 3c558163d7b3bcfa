from growthtracker.main import app


def test_history_requires_token(client):
    assert client.get("/api/chat/messages").status_code == 401


def test_history_empty(client, make_user):
    headers, _ = make_user()
    r = client.get("/api/chat/messages", headers=headers)
    assert r.status_code == 200
    assert r.json() == []


def test_history_newest_first_with_limit(client, make_user):
    headers, _ = make_user()
    log = app.state.chat_log
    for i in range(5):
        log.append("u1", "alice", f"m{i}")

    r = client.get("/api/chat/messages", headers=headers)
    assert [m["content"] for m in r.json()] == ["m4", "m3", "m2", "m1", "m0"]

    r = client.get("/api/chat/messages", params={"limit": 2}, headers=headers)
    assert [m["content"] for m in r.json()] == ["m4", "m3"]
    assert set(r.json()[0]) == {"id", "userId", "username", "content", "createdAt"}
    assert r.json()[0]["createdAt"].endswith("+00:00")


def test_history_limit_bounds(client, make_user):
    headers, _ = make_user()
    assert client.get("/api/chat/messages", params={"limit": 0}, headers=headers).status_code == 422
    assert client.get("/api/chat/messages", params={"limit": 10_000}, headers=headers).status_code == 422


def test_append_timestamps_strictly_increase(client):
    log = app.state.chat_log
    msgs = [log.append("u1", "alice", str(i)) for i in range(20)]
    stamps = [m.created_at for m in msgs]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)
    assert len({m.id for m in msgs}) == 20
