from datetime import datetime, timedelta

import pytest

from handyhub.domain.auth.otp_service import OTPService, generate_code
from handyhub.exceptions import (
    InvalidOTPError,
    OTPAttemptsExceededError,
    OTPExpiredError,
    OTPUsedError,
    ValidationError,
)
from handyhub.models import OTP

EMAIL = "otp@example.com"
PURPOSE = "email-verification"


def wrong_code(code: str) -> str:
    return "111111" if code != "111111" else "222222"


def test_generate_code_is_six_digits():
    for _ in range(50):
        code = generate_code()
        assert len(code) == 6 and code.isdigit()


def test_issue_and_verify(db_session):
    service = OTPService(db_session)
    code = service.issue(EMAIL, PURPOSE)
    db_session.commit()

    service.verify(EMAIL, PURPOSE, code)
    db_session.commit()

    otp = db_session.query(OTP).filter(OTP.email == EMAIL).one()
    assert otp.is_used is True
    assert otp.attempts == 1


def test_used_code_cannot_be_reused(db_session):
    service = OTPService(db_session)
    code = service.issue(EMAIL, PURPOSE)
    db_session.commit()
    service.verify(EMAIL, PURPOSE, code)
    db_session.commit()

    with pytest.raises(OTPUsedError):
        service.verify(EMAIL, PURPOSE, code)


def test_fourth_attempt_is_rejected_even_with_right_code(db_session):
    service = OTPService(db_session)
    code = service.issue(EMAIL, PURPOSE)
    db_session.commit()

    for _ in range(3):
        with pytest.raises(InvalidOTPError):
            service.verify(EMAIL, PURPOSE, wrong_code(code))

    with pytest.raises(OTPAttemptsExceededError):
        service.verify(EMAIL, PURPOSE, code)

    otp = db_session.query(OTP).filter(OTP.email == EMAIL).one()
    assert otp.attempts == 3
    assert otp.is_used is False


def test_expired_code(db_session):
    service = OTPService(db_session)
    code = service.issue(EMAIL, PURPOSE)
    db_session.commit()

    otp = db_session.query(OTP).filter(OTP.email == EMAIL).one()
    otp.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db_session.commit()

    with pytest.raises(OTPExpiredError):
        service.verify(EMAIL, PURPOSE, code)


def test_missing_code(db_session):
    with pytest.raises(ValidationError) as exc_info:
        OTPService(db_session).verify("nobody@example.com", PURPOSE, "123456")
    assert exc_info.value.message == "No valid OTP found for this email"


def test_new_code_invalidates_previous(db_session):
    service = OTPService(db_session)
    first = service.issue(EMAIL, PURPOSE)
    db_session.commit()
    second = service.issue(EMAIL, PURPOSE)
    db_session.commit()

    rows = db_session.query(OTP).filter(OTP.email == EMAIL).order_by(OTP.id).all()
    assert [row.is_used for row in rows] == [True, False]

    # The latest code is the one checked
    if first != second:
        with pytest.raises(InvalidOTPError):
            service.verify(EMAIL, PURPOSE, first)
    service.verify(EMAIL, PURPOSE, second)


def test_purposes_are_independent(db_session):
    service = OTPService(db_session)
    verification = service.issue(EMAIL, "email-verification")
    reset = service.issue(EMAIL, "password-reset")
    db_session.commit()

    service.verify(EMAIL, "password-reset", reset)
    service.verify(EMAIL, "email-verification", verification)


def test_purge_keeps_recently_expired(db_session):
    for minutes_ago in (1, 24 * 60):
        db_session.add(
            OTP(
                email=f"{minutes_ago}@example.com",
                purpose=PURPOSE,
                code="123456",
                expires_at=datetime.utcnow() - timedelta(minutes=minutes_ago),
            )
        )
    db_session.commit()

    assert OTPService(db_session).purge_expired() == 1
    db_session.commit()
    assert [otp.email for otp in db_session.query(OTP).all()] == ["1@example.com"]


def test_expired_code_survives_other_issues(db_session):
    service = OTPService(db_session)
    code = service.issue(EMAIL, PURPOSE)
    db_session.commit()

    otp = db_session.query(OTP).filter(OTP.email == EMAIL).one()
    otp.expires_at = datetime.utcnow() - timedelta(minutes=5)
    db_session.commit()

    # Someone else registering purges old rows but not this one
    service.issue("other@example.com", PURPOSE)
    db_session.commit()

    with pytest.raises(OTPExpiredError):
        service.verify(EMAIL, PURPOSE, code)
