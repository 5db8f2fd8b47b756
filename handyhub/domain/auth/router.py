"""Auth router - Registration, verification, login and password recovery endpoints"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...notifications import NotificationDispatcher, get_notifier
from ...rate_limiter import create_rate_limiter
from ...schemas import ok
from ..users.schemas import UserResponse
from .schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendOTPRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Rate limiters for the endpoints that send a code by email
rate_limit_register = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="register")
rate_limit_password_reset = create_rate_limiter(limit=5, window_seconds=900, key_prefix="password_reset")
rate_limit_resend_otp = create_rate_limiter(limit=5, window_seconds=900, key_prefix="resend_otp")


def get_auth_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db, notifier)


def _session_payload(session: dict) -> dict:
    return {"token": session["token"], "user": UserResponse.from_model(session["user"])}


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_register),
):
    user = service.register(data)
    return ok(
        data={"user": UserResponse.from_model(user)},
        message="User registered successfully. Please check your email for verification code.",
    )


@router.post("/verify-email")
async def verify_email(data: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    session = service.verify_email(data.email, data.otp)
    return ok(data=_session_payload(session), message="Email verified successfully")


@router.post("/login")
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    session = service.login(data.email, data.password)
    return ok(data=_session_payload(session), message="Login successful")


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_password_reset),
):
    """Request a password reset code; the response never reveals whether the account exists"""
    return ok(message=service.forgot_password(data.email))


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password(data.email, data.otp, data.newPassword)
    return ok(message="Password reset successfully")


@router.post("/resend-otp")
async def resend_otp(
    data: ResendOTPRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_resend_otp),
):
    return ok(message=service.resend_otp(data.email, data.purpose))


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return ok(data={"user": UserResponse.from_model(current_user)})


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy"""
    logger.info(f"👋 User {current_user.id} logged out")
    return ok(message="Logged out successfully")
