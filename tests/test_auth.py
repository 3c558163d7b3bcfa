def _signup_body(**over):
    body = {
        "username": "alice",
        "email": "alice@example.com",
        "password": "secret123",
        "confirmPassword": "secret123",
        "firstName": "Alice",
        "lastName": "Tester",
    }
    body.update(over)
    return body


def test_signup_returns_user_and_token(client):
    r = client.post("/api/auth/signup", json=_signup_body())
    assert r.status_code == 201
    data = r.json()
    assert data["token"]
    assert data["user"]["username"] == "alice"
    assert data["user"]["firstName"] == "Alice"
    assert "password" not in data["user"] and "hashedPassword" not in data["user"]


def test_signup_password_mismatch(client):
    r = client.post("/api/auth/signup", json=_signup_body(confirmPassword="other123"))
    assert r.status_code == 400


def test_signup_duplicates(client):
    assert client.post("/api/auth/signup", json=_signup_body()).status_code == 201
    r = client.post("/api/auth/signup", json=_signup_body(username="alice2"))
    assert r.status_code == 400
    assert r.json()["detail"] == "User already exists"
    r = client.post("/api/auth/signup", json=_signup_body(email="other@example.com"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Username already taken"


def test_signin_success_and_me(client):
    client.post("/api/auth/signup", json=_signup_body())
    r = client.post("/api/auth/signin", json={"email": "alice@example.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["token"]

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["email"] == "alice@example.com"


def test_signin_fail(client):
    client.post("/api/auth/signup", json=_signup_body())
    r = client.post("/api/auth/signin", json={"email": "alice@example.com", "password": "wrong"})
    assert r.status_code == 401
    r = client.post("/api/auth/signin", json={"email": "nobody@example.com", "password": "secret123"})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
