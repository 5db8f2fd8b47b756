"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import User
from ...shared.validators import validate_coordinates, validate_phone
from ...utils.sanitization import clean_text


class AddressUpdate(BaseModel):
    street: Optional[str] = Field(None, min_length=5, max_length=100)
    city: Optional[str] = Field(None, min_length=2, max_length=50)
    state: Optional[str] = Field(None, min_length=2, max_length=50)
    zipCode: Optional[str] = Field(None, min_length=5, max_length=10)
    country: Optional[str] = Field(None, max_length=50)
    fullAddress: Optional[str] = Field(None, max_length=300)

    @field_validator("street", "city", "state", "zipCode", "country", "fullAddress")
    @classmethod
    def clean(cls, v):
        return clean_text(v)


class LocationUpdate(BaseModel):
    coordinates: list[float]

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v):
        return validate_coordinates(v)


class PreferencesUpdate(BaseModel):
    emailNotifications: Optional[bool] = None
    smsNotifications: Optional[bool] = None
    marketingEmails: Optional[bool] = None


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=500)
    address: Optional[AddressUpdate] = None
    location: Optional[LocationUpdate] = None
    preferences: Optional[PreferencesUpdate] = None

    @field_validator("name", "bio")
    @classmethod
    def clean(cls, v):
        return clean_text(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)


class UserStatusUpdate(BaseModel):
    isActive: Optional[bool] = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    role: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[dict[str, Any]] = None
    location: Optional[list[float]] = None
    isEmailVerified: bool
    isActive: bool
    lastLogin: Optional[datetime] = None
    preferences: Optional[dict[str, Any]] = None
    totalBookings: int
    rating: dict[str, Any]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            avatar=user.avatar_url,
            bio=user.bio,
            address=user.address,
            location=user.location,
            isEmailVerified=user.is_email_verified,
            isActive=user.is_active,
            lastLogin=user.last_login,
            preferences=user.preferences,
            totalBookings=user.total_bookings,
            rating={"average": user.rating_average, "count": user.rating_count},
            createdAt=user.created_at,
        )
