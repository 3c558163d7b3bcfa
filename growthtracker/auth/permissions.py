# growthtracker/auth/permissions.py
"""
Authentication dependencies for protected routes.
"""

from typing import Optional
from fastapi import Depends, HTTPException, Header
from sqlalchemy.orm import Session

from .security import verify_token
from growthtracker.core.db import get_db
from growthtracker.models.orm import User


class AuthContext:
    """User authentication context"""
    def __init__(self, user_id: str, username: str, email: str, db: Session):
        self.user_id = user_id
        self.username = username
        self.email = email
        self.db = db
        self._user: Optional[User] = None

    @property
    def user(self) -> User:
        """Lazy load user from database"""
        if self._user is None:
            self._user = self.db.get(User, self.user_id)
            if not self._user:
                raise HTTPException(status_code=404, detail="User not found")
        return self._user


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def get_auth_context(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Dependency to get authenticated user context.
    Validates the JWT and returns the caller's identity.

    Usage:
        @router.get("/protected")
        def protected_route(auth: AuthContext = Depends(get_auth_context)):
            print(f"User: {auth.username}")
    """
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Access token required")

    token_data = verify_token(token)
    if not token_data:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return AuthContext(
        user_id=token_data["id"],
        username=token_data["username"],
        email=token_data.get("email", ""),
        db=db,
    )
