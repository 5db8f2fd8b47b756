"""OTP service - Issue and verify single-use numeric codes"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ...config import OTP_EXPIRE_MINUTES, OTP_MAX_ATTEMPTS, OTP_PURGE_GRACE_MINUTES
from ...exceptions import (
    InvalidOTPError,
    OTPAttemptsExceededError,
    OTPExpiredError,
    OTPUsedError,
    ValidationError,
)
from .repository import OTPRepository

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Random 6-digit numeric code"""
    return str(100000 + secrets.randbelow(900000))


class OTPService:
    """Service layer for OTP issue and verification"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OTPRepository()

    def issue(self, email: str, purpose: str) -> str:
        """
        Create a fresh OTP and invalidate the older ones for the same email and purpose.
        Flushes only; the caller commits together with its own changes.
        """
        email = email.lower()
        self.purge_expired()
        superseded = self.repo.invalidate_outstanding(self.db, email, purpose)
        if superseded:
            logger.debug(f"🔁 Invalidated {superseded} earlier {purpose} OTP(s) for {email}")

        code = generate_code()
        self.repo.create_otp(
            self.db,
            email=email,
            purpose=purpose,
            code=code,
            expires_at=datetime.utcnow() + timedelta(minutes=OTP_EXPIRE_MINUTES),
        )
        logger.info(f"🔑 Issued {purpose} OTP for {email}")
        return code

    def verify(self, email: str, purpose: str, code: str) -> None:
        """
        Check a code against the latest OTP for the email and purpose.

        Order: used, attempts exhausted, expired, then the attempt is counted
        and the code compared. A wrong code still consumes the attempt.

        Raises:
            ValidationError: No OTP exists for the email and purpose
            OTPUsedError, OTPAttemptsExceededError, OTPExpiredError, InvalidOTPError
        """
        email = email.lower()
        try:
            otp = self.repo.get_latest_for_update(self.db, email, purpose)
            if otp is None:
                raise ValidationError("No valid OTP found for this email")
            if otp.is_used:
                raise OTPUsedError()
            if otp.attempts >= OTP_MAX_ATTEMPTS:
                raise OTPAttemptsExceededError()
            if datetime.utcnow() > otp.expires_at:
                raise OTPExpiredError()

            otp.attempts += 1
            if not secrets.compare_digest(otp.code, code or ""):
                self.db.commit()
                logger.warning(f"⚠️ Invalid {purpose} OTP for {email} (attempt {otp.attempts})")
                raise InvalidOTPError()

            otp.is_used = True
            self.db.flush()
        except Exception:
            # Commit above already persisted a counted attempt; anything else is discarded
            self.db.rollback()
            raise

    def purge_expired(self) -> int:
        """Delete codes that expired more than OTP_PURGE_GRACE_MINUTES ago"""
        cutoff = datetime.utcnow() - timedelta(minutes=OTP_PURGE_GRACE_MINUTES)
        removed = self.repo.delete_expired(self.db, cutoff)
        if removed:
            logger.debug(f"🧹 Purged {removed} expired OTP(s)")
        return removed
