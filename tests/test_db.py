import importlib.util
from pathlib import Path

import pytest

from growthtracker.core.db import SessionLocal, session_scope
from growthtracker.models.orm import User

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "create_demo_user.py"


def _user(username):
    return User(username=username, email=f"{username}@example.com", hashed_password="x",
                first_name=username, last_name="Tester")


def _count():
    db = SessionLocal()
    try:
        return db.query(User).count()
    finally:
        db.close()


def test_session_scope_commits():
    with session_scope() as db:
        db.add(_user("alice"))
    assert _count() == 1


def test_session_scope_rolls_back_on_error():
    with pytest.raises(RuntimeError):
        with session_scope() as db:
            db.add(_user("alice"))
            db.flush()
            raise RuntimeError("boom")
    assert _count() == 0


def test_create_demo_user_is_idempotent():
    spec = importlib.util.spec_from_file_location("create_demo_user", SCRIPT)
    script = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(script)

    assert script.create_demo_user() is True
    assert script.create_demo_user() is False
    assert _count() == 1
