import os
import tempfile

# Must be set before growthtracker is imported (engine + secret are read at import)
_TMP = tempfile.mkdtemp(prefix="growth-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP, "test.db")
os.environ["GROWTH_SECRET"] = "test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from growthtracker.main import app  # noqa: E402
from growthtracker.api import chat as chat_api  # noqa: E402
from growthtracker.core.db import Base, engine  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    # Fresh registry / message log / dispatcher for every test
    chat_api.install(app)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client):
    """Sign up a user through the API; returns (auth headers, user json)."""
    def _make(username="alice", email=None, password="secret123"):
        r = client.post("/api/auth/signup", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
            "confirmPassword": password,
            "firstName": username.title(),
            "lastName": "Tester",
        })
        assert r.status_code == 201, r.text
        data = r.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]
    return _make
