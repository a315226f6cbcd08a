"""Users router — account administration."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext, Role
from lms.schemas.auth import MessageResponse
from lms.schemas.user import (
    UserCreate,
    UserListResponse,
    UserMutationResponse,
    UserPublic,
    UserResponse,
    UserUpdate,
)
from lms.services import user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    role: Optional[Role] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    users = user_service.list_users(db, current_user, role)
    return UserListResponse(users=[UserPublic.model_validate(u) for u in users], total=len(users))


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return UserResponse(user=UserPublic.model_validate(user_service.get_user(db, current_user, user_id)))


@router.post("", response_model=UserMutationResponse, status_code=201)
def create_user(
    req: UserCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    user = user_service.create_user(db, current_user, req.email, req.password, req.name, req.role)
    return UserMutationResponse(message="User created successfully", user=UserPublic.model_validate(user))


@router.put("/{user_id}", response_model=UserMutationResponse)
def update_user(
    user_id: str,
    req: UserUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    user = user_service.update_user(db, current_user, user_id, name=req.name, role=req.role)
    return UserMutationResponse(message="User updated successfully", user=UserPublic.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    user_service.delete_user(db, current_user, user_id)
    return MessageResponse(message="User deleted successfully")
