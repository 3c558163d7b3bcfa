import os
import time
import jwt
import logging
from typing import Optional
import bcrypt

SECRET_KEY = os.getenv("GROWTH_SECRET", "dev-secret-change-me")  # override in prod
JWT_EXPIRE_MIN = int(os.getenv("GROWTH_JWT_EXPIRE_MIN", "1440"))  # 1 day
ALGO = "HS256"

logger = logging.getLogger("growth.auth")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    """
    salt = bcrypt.gensalt(rounds=10)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError as e:
        logger.warning("Password verification failed: %s", e)
        return False


def create_token(user_id: str, username: str, email: str) -> str:
    now = int(time.time())
    exp = now + JWT_EXPIRE_MIN * 60
    to_encode = {"id": user_id, "username": username, "email": email, "iat": now, "exp": exp}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGO)


def verify_token(token: str) -> Optional[dict]:
    """Decoded claims, or None when the token is bad, expired or incomplete."""
    try:
        data = jwt.decode(token, SECRET_KEY, algorithms=[ALGO])
    except jwt.PyJWTError as e:
        logger.warning("Token verification failed: %s", e)
        return None
    if not data.get("id") or not data.get("username"):
        logger.warning("Token verification failed: missing identity claims")
        return None
    return data
