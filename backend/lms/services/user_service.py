"""User management service (ADMIN / HEAD)."""

from typing import Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.user import User
from lms.permissions import AuthContext, Capability, Role, authorize
from lms.services import activity_service, auth_service
from lms.services.activity_service import ActivityAction, ActivityEntity


def list_users(db: Session, actor: AuthContext, role: Optional[Role] = None) -> list[User]:
    authorize(actor, Capability.USER_MANAGE)
    query = db.query(User)
    if role:
        query = query.filter(User.role == role.value)
    return query.order_by(User.created_at.desc()).all()


def get_user(db: Session, actor: AuthContext, user_id: str) -> User:
    authorize(actor, Capability.USER_MANAGE)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def create_user(
    db: Session,
    actor: AuthContext,
    email: str,
    password: str,
    name: str,
    role: Role,
) -> User:
    """Create an account with any role."""
    authorize(actor, Capability.USER_MANAGE)
    user = auth_service.register(db, email, password, name, forced_role=role)
    activity_service.record(db, actor.id, ActivityAction.USER_CREATED, ActivityEntity.USER, user.id).discard()
    return user


def update_user(
    db: Session,
    actor: AuthContext,
    user_id: str,
    name: Optional[str] = None,
    role: Optional[Role] = None,
) -> User:
    user = get_user(db, actor, user_id)

    if name is not None:
        if not name.strip():
            raise ValidationError("Name cannot be empty")
        user.name = name.strip()
    if role is not None:
        user.role = role.value

    db.commit()
    db.refresh(user)
    activity_service.record(db, actor.id, ActivityAction.USER_UPDATED, ActivityEntity.USER, user.id).discard()
    return user


def delete_user(db: Session, actor: AuthContext, user_id: str) -> None:
    user = get_user(db, actor, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot delete your own account")

    db.delete(user)
    db.commit()
    activity_service.record(db, actor.id, ActivityAction.USER_DELETED, ActivityEntity.USER, user_id).discard()
