from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from .config import get_config


def create_access_token(subject: str | Any, expires_delta: timedelta | None = None) -> str:
    cfg = get_config().security
    if expires_delta is None:
        expires_delta = timedelta(minutes=cfg.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, cfg.secret_key, algorithm=cfg.algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Return the token claims. Raises jwt.InvalidTokenError on bad or expired tokens."""
    cfg = get_config().security
    return jwt.decode(token, cfg.secret_key, algorithms=[cfg.algorithm])


def get_password_hash(password: str) -> str:
    rounds = get_config().security.bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long password
        return False
