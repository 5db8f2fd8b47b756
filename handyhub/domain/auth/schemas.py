"""Auth domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_password_strength, validate_phone
from ...utils.sanitization import clean_text


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: str
    password: str
    phone: str
    # Accepted for client compatibility; the worker role is only granted on approval
    role: Optional[Literal["user", "worker"]] = None

    @field_validator("name")
    @classmethod
    def clean_name(cls, v):
        return clean_text(v, max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


def _check_otp(v: str) -> str:
    v = (v or "").strip()
    if len(v) != 6 or not v.isdigit():
        raise ValueError("OTP must be 6 digits")
    return v


class VerifyEmailRequest(BaseModel):
    email: str
    otp: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, v):
        return _check_otp(v)


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)


class ResetPasswordRequest(BaseModel):
    email: str
    otp: str
    newPassword: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, v):
        return _check_otp(v)

    @field_validator("newPassword")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


class ResendOTPRequest(BaseModel):
    email: str
    purpose: Literal["email-verification", "password-reset"] = "email-verification"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)
