"""User request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr

from lms.permissions import Role


class UserSummary(BaseModel):
    id: str
    name: str
    email: str

    class Config:
        from_attributes = True


class UserPublic(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str
    role: Role


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[Role] = None


class UserResponse(BaseModel):
    user: UserPublic


class UserMutationResponse(BaseModel):
    message: str
    user: UserPublic


class UserListResponse(BaseModel):
    users: list[UserPublic]
    total: int
