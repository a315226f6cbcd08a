"""Auth service — registration, login, and password reset."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.config import settings
from lms.errors import Conflict, Unauthenticated, ValidationError
from lms.middleware.auth import MAX_PASSWORD_BYTES, create_access_token, hash_password, verify_password
from lms.models.user import User
from lms.permissions import AuthContext, Role

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_password_length(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def _find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register(
    db: Session,
    email: str,
    password: str,
    name: str,
    forced_role: Optional[Role] = None,
) -> User:
    """Create a user. Without ``forced_role`` the account is always a STUDENT.

    Callers outside the user-management path must not pass ``forced_role``.
    """
    email = _normalize_email(email)
    if not email or not password or not (name or "").strip():
        raise ValidationError("Email, password, and name are required")
    _check_password_length(password)

    if _find_by_email(db, email):
        raise Conflict("User already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name.strip(),
        role=(forced_role or Role.STUDENT).value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique index.
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(user)
    return user


def login(db: Session, email: str, password: str) -> tuple[str, User]:
    """Return a signed token for valid credentials.

    Unknown email and wrong password fail with the same message.
    """
    user = _find_by_email(db, _normalize_email(email))
    if not user or not verify_password(password or "", user.password_hash):
        raise Unauthenticated("Invalid credentials")
    return create_access_token(user), user


def request_reset(db: Session, email: str) -> str:
    """Issue a reset token if the email is known; the reply never says which."""
    user = _find_by_email(db, _normalize_email(email))
    if user:
        token = secrets.token_hex(32)
        expiry = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
        user.reset_token = token
        user.reset_token_expiry = expiry
        db.commit()

        # Email delivery is not wired up; the link goes to the log instead.
        reset_url = f"{settings.FRONTEND_URL}/reset-password?token={token}"
        logger.info("Password reset requested for %s: %s (expires %s)", user.email, reset_url, expiry.isoformat())
    return RESET_REQUESTED_MESSAGE


def reset_password(db: Session, token: str, new_password: str) -> None:
    if not token or not new_password:
        raise ValidationError("Token and new password are required")
    _check_password_length(new_password)

    user = (
        db.query(User)
        .filter(
            User.reset_token == token,
            User.reset_token_expiry > datetime.now(timezone.utc),
        )
        .first()
    )
    if not user:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.commit()


def change_password(db: Session, actor: AuthContext, current_password: str, new_password: str) -> None:
    user = db.query(User).filter(User.id == actor.id).first()
    if not user:
        raise Unauthenticated("User not found")
    if not verify_password(current_password or "", user.password_hash):
        raise Unauthenticated("Current password is incorrect")
    _check_password_length(new_password)

    user.password_hash = hash_password(new_password)
    db.commit()


def get_profile(db: Session, actor: AuthContext) -> User:
    user = db.query(User).filter(User.id == actor.id).first()
    if not user:
        raise Unauthenticated("User not found")
    return user
