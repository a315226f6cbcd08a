"""JWT authentication: password hashing, tokens, and the current-user dependency."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from lms.config import settings
from lms.database import get_db
from lms.errors import Unauthenticated
from lms.models.user import User
from lms.permissions import AuthContext, Role

# auto_error=False so a missing header yields our 401 instead of FastAPI's 403.
security = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes and newer releases refuse anything longer.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    pwd_bytes = plain_password.encode("utf-8")
    if len(pwd_bytes) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(
        pwd_bytes,
        hashed_password.encode("utf-8"),
    )


def create_access_token(user: User) -> str:
    """Sign a bearer token carrying ``{id, email, role}``.

    Tokens only expire when ACCESS_TOKEN_EXPIRE_MINUTES is configured; otherwise
    they stay valid for as long as the user row exists.
    """
    to_encode = {"id": user.id, "email": user.email, "role": user.role}
    if settings.ACCESS_TOKEN_EXPIRE_MINUTES:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthenticated("Invalid token")


def to_context(user: User) -> AuthContext:
    return AuthContext(id=user.id, email=user.email, name=user.name, role=Role(user.role))


def authenticate(db: Session, token: Optional[str]) -> AuthContext:
    """Resolve a raw bearer token to the acting user.

    The user is re-read on every request, so a token for a deleted user is
    rejected even though its signature still verifies.
    """
    if not token:
        raise Unauthenticated("Access token required")

    payload = decode_token(token)
    user_id = payload.get("id")
    if not user_id:
        raise Unauthenticated("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthenticated("User not found")
    return to_context(user)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthContext:
    token = credentials.credentials if credentials else None
    return authenticate(db, token)
