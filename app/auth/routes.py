from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_token_payload
from app.core.email_service import EmailService, get_email_service
from app.core.redis_service import TokenBlocklist, get_token_blocklist
from app.auth.models import User
from app.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    MessageResponse,
    ProfileUpdate,
    ResetPasswordRequest,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    VerifyResetTokenResponse,
)
from app.auth.service import AuthService
from app.auth.password_reset import PasswordResetService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Register a new employee account and log it in."""
    user, token = AuthService(db, settings).register(user_data)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login_user(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Login user and return a session token."""
    user, token = AuthService(db, settings).login(login_data)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """Email a password reset link. The answer is the same for unknown emails.

    Plain def: the SMTP send must finish before answering, so it runs in the threadpool.
    """
    message = PasswordResetService(db, email_service, settings).request_reset(request.email)
    return MessageResponse(message=message)


@router.get("/verify-reset-token/{token}", response_model=VerifyResetTokenResponse)
async def verify_reset_token(
    token: str,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """Check a reset token before showing the reset form."""
    masked = PasswordResetService(db, email_service, settings).verify_reset_token(token)
    return VerifyResetTokenResponse(valid=True, email=masked)


@router.post("/reset-password/{token}", response_model=AuthResponse)
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_settings)
):
    """Set a new password with a reset token; logs the user in."""
    user, session_token = PasswordResetService(db, email_service, settings).complete_reset(token, request.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=session_token)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_current_user(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Update name or email of the current user."""
    return AuthService(db, settings).update_profile(current_user, profile)


@router.put("/change-password", response_model=TokenResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Change password and receive a fresh token."""
    token = AuthService(db, settings).change_password(current_user, request)
    return TokenResponse(token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout_user(
    current_user: User = Depends(get_current_user),
    payload: dict = Depends(get_token_payload),
    blocklist: TokenBlocklist = Depends(get_token_blocklist),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Logout. The client discards its token; it is also revoked when a blocklist is available."""
    AuthService(db, settings).logout(current_user, payload, blocklist)
    return MessageResponse(message="Logged out successfully")
