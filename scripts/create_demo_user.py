#!/usr/bin/env python3
"""
Create the tables and a demo account.
Run once against a fresh database (DATABASE_URL).
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from growthtracker.core.db import create_all, session_scope
from growthtracker.models.orm import User
from growthtracker.auth.security import hash_password

DEMO_EMAIL = "demo@growth.local"
DEMO_PASSWORD = "demo123"


def create_demo_user() -> bool:
    """Returns False when the demo account is already there."""
    create_all()
    with session_scope() as db:
        if db.query(User).filter(User.email == DEMO_EMAIL).first():
            print("Demo user already exists")
            return False

        db.add(User(
            username="demo",
            email=DEMO_EMAIL,
            hashed_password=hash_password(DEMO_PASSWORD),
            first_name="Demo",
            last_name="User",
        ))
    print(f"Created demo user (email: {DEMO_EMAIL}, password: {DEMO_PASSWORD})")
    return True


if __name__ == "__main__":
    create_demo_user()
