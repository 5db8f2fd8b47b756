"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a phone number: digits with optional leading +, spaces, dashes and parentheses.

    Raises:
        ValueError: If the phone number is malformed or too short
    """
    if not phone:
        return phone

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if not PHONE_PATTERN.match(phone) or not 7 <= len(digits) <= 15:
        raise ValueError("Please provide a valid phone number")

    return phone


def validate_password_strength(password: str) -> str:
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not PASSWORD_PATTERN.match(password):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return password


def parse_hhmm(value: str) -> time:
    """
    Parse an ``HH:MM`` string (hour may be a single digit).

    Raises:
        ValueError: If the string is not a valid 24h time
    """
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError("Time must be in HH:MM format")
    return time(int(match.group(1)), int(match.group(2)))


def normalize_hhmm(value: str) -> str:
    """Parse and re-emit a time as zero-padded ``HH:MM``"""
    return parse_hhmm(value).strftime("%H:%M")


def minutes_of_day(value: str) -> int:
    parsed = parse_hhmm(value)
    return parsed.hour * 60 + parsed.minute


def validate_coordinates(coordinates: list[float]) -> list[float]:
    """
    Validate a ``[longitude, latitude]`` pair.

    Raises:
        ValueError: If the pair has the wrong arity or is out of range
    """
    if len(coordinates) != 2:
        raise ValueError("Coordinates must be an array of [longitude, latitude]")
    longitude, latitude = coordinates
    if not -180 <= longitude <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    if not -90 <= latitude <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    return [float(longitude), float(latitude)]
