"""Auth router — registration, login, password reset, and the current user."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from lms.config import settings
from lms.database import get_db
from lms.middleware.auth import create_access_token, get_current_user
from lms.middleware.rate_limit import limiter
from lms.permissions import AuthContext
from lms.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from lms.schemas.user import UserCreate, UserMutationResponse, UserPublic, UserResponse
from lms.services import auth_service, user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, req: RegisterRequest, db: Session = Depends(get_db)):
    """Self-registration. The account is always a STUDENT."""
    user = auth_service.register(db, req.email, req.password, req.name)
    return TokenResponse(
        message="User registered successfully",
        token=create_access_token(user),
        user=UserPublic.model_validate(user),
    )


@router.post("/register/admin", response_model=UserMutationResponse, status_code=201)
def register_admin(
    req: UserCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Create an account with any role (ADMIN / HEAD)."""
    user = user_service.create_user(db, current_user, req.email, req.password, req.name, req.role)
    return UserMutationResponse(message="User created successfully", user=UserPublic.model_validate(user))


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    token, user = auth_service.login(db, req.email, req.password)
    return TokenResponse(message="Login successful", token=token, user=UserPublic.model_validate(user))


@router.get("/me", response_model=UserResponse)
def get_me(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return UserResponse(user=UserPublic.model_validate(auth_service.get_profile(db, current_user)))


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def forgot_password(request: Request, req: ForgotPasswordRequest, db: Session = Depends(get_db)):
    return MessageResponse(message=auth_service.request_reset(db, req.email))


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def reset_password(request: Request, req: ResetPasswordRequest, db: Session = Depends(get_db)):
    auth_service.reset_password(db, req.token, req.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    req: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    auth_service.change_password(db, current_user, req.current_password, req.new_password)
    return MessageResponse(message="Password changed successfully")
