import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlmodel import Session, or_, select

from ..core.config import get_config
from ..core.db import get_session
from ..core.security import create_access_token, get_password_hash, verify_password
from ..models.user import Token, User, UserCreate, UserRead
from .deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address)


def _login_rate_limit() -> str:
    return get_config().security.login_rate_limit


@router.post("/register", response_model=UserRead)
def register(user_in: UserCreate, session: Session = Depends(get_session)) -> Any:
    user = session.exec(select(User).where(User.email == user_in.email)).first()
    if user:
        raise HTTPException(
            status_code=400,
            detail="The user with this email already exists in the system",
        )
    user = session.exec(select(User).where(User.username == user_in.username)).first()
    if user:
        raise HTTPException(status_code=400, detail="Username is already taken")
    user = User(
        email=user_in.email,
        username=user_in.username,
        full_name=user_in.full_name,
        avatar=user_in.avatar,
        hashed_password=get_password_hash(user_in.password),
        is_active=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return user

@router.post("/login", response_model=Token)
@limiter.limit(_login_rate_limit)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
) -> Any:
    # OAuth2PasswordRequestForm calls it 'username'; accept the email as well
    user = session.exec(
        select(User).where(or_(User.email == form_data.username, User.username == form_data.username))
    ).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    access_token = create_access_token(subject=user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)) -> Any:
    return current_user

@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)) -> Any:
    # Tokens are stateless JWTs; the client drops its copy
    logger.info("User %s logged out", current_user.id)
    return {"message": "Successfully logged out"}
