"""Auth service - Registration, email verification, login and password recovery"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...auth import create_access_token, hash_password, verify_password
from ...exceptions import AlreadyExistsError, AuthenticationError, NotFoundError, ValidationError
from ...models import User
from ...notifications import NotificationKind
from ..users.repository import UserRepository
from .otp_service import OTPService
from .schemas import RegisterRequest

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email-verification"
PASSWORD_RESET = "password-reset"

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset code."
OTP_SENT_MESSAGE = "OTP sent successfully"

OTP_NOTIFICATION_KINDS = {
    EMAIL_VERIFICATION: NotificationKind.VERIFICATION,
    PASSWORD_RESET: NotificationKind.PASSWORD_RESET,
}


class AuthService:
    """Service layer for identity flows"""

    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.repo = UserRepository()
        self.otp = OTPService(db)
        self.notifier = notifier

    def _notify(self, kind: NotificationKind, user: User, **context) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch(kind, user.email, user.name, **context)
        except Exception as e:
            logger.error(f"❌ Failed to queue {kind.value} notification for {user.email}: {e}")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _session(self, user: User) -> dict:
        return {"token": create_access_token(user), "user": user}

    def register(self, data: RegisterRequest) -> User:
        if self.repo.get_by_email(self.db, data.email):
            raise AlreadyExistsError("User already exists with this email")

        user = self.repo.create_user(
            self.db,
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            phone=data.phone,
            role="user",
            is_email_verified=False,
            is_active=True,
        )
        code = self.otp.issue(user.email, EMAIL_VERIFICATION)
        self._commit()
        self.db.refresh(user)

        logger.info(f"✅ Registered user {user.id} ({user.email})")
        self._notify(NotificationKind.VERIFICATION, user, otp=code)
        return user

    def verify_email(self, email: str, code: str) -> dict:
        """Consume the verification OTP, mark the email verified and sign the user in"""
        self.otp.verify(email, EMAIL_VERIFICATION, code)

        user = self.repo.get_by_email(self.db, email)
        if not user:
            self.db.rollback()
            raise NotFoundError("User not found")

        user.is_email_verified = True
        user.last_login = datetime.utcnow()
        self._commit()
        self.db.refresh(user)

        logger.info(f"✅ Email verified for user {user.id}")
        self._notify(NotificationKind.WELCOME, user)
        return self._session(user)

    def login(self, email: str, password: str) -> dict:
        user = self.repo.get_by_email(self.db, email)
        # Same message for unknown email and wrong password
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"⚠️ Failed login attempt for {email}")
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Your account has been deactivated. Please contact support.")
        if not user.is_email_verified:
            raise AuthenticationError("Please verify your email before logging in")

        user.last_login = datetime.utcnow()
        self._commit()
        self.db.refresh(user)
        logger.info(f"🔓 User {user.id} logged in")
        return self._session(user)

    def forgot_password(self, email: str) -> str:
        user = self.repo.get_by_email(self.db, email)
        if not user or not user.is_active:
            logger.info(f"ℹ️ Password reset requested for unknown or inactive email {email}")
            return FORGOT_PASSWORD_MESSAGE

        code = self.otp.issue(user.email, PASSWORD_RESET)
        self._commit()
        self._notify(NotificationKind.PASSWORD_RESET, user, otp=code)
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        self.otp.verify(email, PASSWORD_RESET, code)

        user = self.repo.get_by_email(self.db, email)
        if not user:
            self.db.rollback()
            raise NotFoundError("User not found")

        user.password_hash = hash_password(new_password)
        self._commit()
        logger.info(f"🔐 Password reset for user {user.id}")
        self._notify(NotificationKind.PASSWORD_CHANGED, user)

    def resend_otp(self, email: str, purpose: str) -> str:
        user = self.repo.get_by_email(self.db, email)
        if not user or not user.is_active:
            return OTP_SENT_MESSAGE
        if purpose == EMAIL_VERIFICATION and user.is_email_verified:
            raise ValidationError("Email is already verified")

        code = self.otp.issue(user.email, purpose)
        self._commit()
        self._notify(OTP_NOTIFICATION_KINDS[purpose], user, otp=code)
        return OTP_SENT_MESSAGE
