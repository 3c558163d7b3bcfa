import logging
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from .permissions import AuthContext, get_auth_context
from .security import create_token, hash_password, verify_password
from growthtracker.core.db import get_db
from growthtracker.models.orm import User
from growthtracker.models.schemas import AuthOut, SignInIn, SignUpIn, UserPublic

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("growth.auth.routes")


def _auth_response(user: User) -> AuthOut:
    token = create_token(user.id, user.username, user.email)
    return AuthOut(user=UserPublic.model_validate(user), token=token)


@router.post("/signup", response_model=AuthOut, status_code=201)
def signup(payload: SignUpIn, db: Session = Depends(get_db)):
    if payload.password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords don't match")

    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="User already exists")

    if db.query(User).filter(User.username == payload.username).first():
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Signup success for user '%s'", user.username)
    return _auth_response(user)


@router.post("/signin", response_model=AuthOut)
def signin(payload: SignInIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()

    if not user:
        logger.info("Signin failed for '%s' (not found)", payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not verify_password(payload.password, user.hashed_password):
        logger.info("Signin failed for '%s' (invalid password)", payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("Signin success for user '%s'", user.username)
    return _auth_response(user)


@router.get("/me", response_model=UserPublic)
def me(auth: AuthContext = Depends(get_auth_context)):
    return auth.user
