"""OTP repository - Database operations for one-time passcodes"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import OTP


class OTPRepository:
    """Repository for OTP database operations"""

    @staticmethod
    def create_otp(db: Session, email: str, purpose: str, code: str, expires_at: datetime) -> OTP:
        otp = OTP(email=email, purpose=purpose, code=code, expires_at=expires_at, attempts=0, is_used=False)
        db.add(otp)
        db.flush()
        return otp

    @staticmethod
    def invalidate_outstanding(db: Session, email: str, purpose: str) -> int:
        """Mark every unused OTP for the email and purpose as used"""
        return (
            db.query(OTP)
            .filter(OTP.email == email, OTP.purpose == purpose, OTP.is_used.is_(False))
            .update({OTP.is_used: True}, synchronize_session=False)
        )

    @staticmethod
    def get_latest_for_update(db: Session, email: str, purpose: str) -> Optional[OTP]:
        """Most recent OTP for the email and purpose, row-locked until commit"""
        return (
            db.query(OTP)
            .filter(OTP.email == email, OTP.purpose == purpose)
            .order_by(OTP.created_at.desc(), OTP.id.desc())
            .with_for_update()
            .first()
        )

    @staticmethod
    def delete_expired(db: Session, cutoff: datetime) -> int:
        return db.query(OTP).filter(OTP.expires_at < cutoff).delete(synchronize_session=False)
