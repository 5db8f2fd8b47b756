"""Worker domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import AVAILABILITY_SLOTS, EXPERIENCE_LEVELS, WORKER_SERVICES, Worker
from ...shared.validators import validate_email, validate_phone
from ...utils.sanitization import clean_text
from .vetting import Decision


def _check_services(v):
    if v is None:
        return v
    invalid = [s for s in v if s not in WORKER_SERVICES]
    if invalid:
        raise ValueError(f"Invalid services: {', '.join(invalid)}")
    return list(dict.fromkeys(v))


def _check_availability(v):
    if v is None:
        return v
    invalid = [slot for slot in v if slot not in AVAILABILITY_SLOTS]
    if invalid:
        raise ValueError(f"Invalid availability slots: {', '.join(invalid)}")
    return list(dict.fromkeys(v))


class WorkerApplicationUpdate(BaseModel):
    """Partial save of the application wizard; every field is optional"""

    firstName: Optional[str] = Field(None, max_length=100)
    lastName: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(None, max_length=500)
    services: Optional[list[str]] = None
    experience: Optional[str] = None
    hourlyRate: Optional[float] = Field(None, ge=10, le=200)
    availability: Optional[list[str]] = None
    bio: Optional[str] = Field(None, max_length=500)
    hasConvictions: Optional[bool] = None
    convictionDetails: Optional[str] = None

    @field_validator("firstName", "lastName", "address", "bio", "convictionDetails")
    @classmethod
    def clean(cls, v):
        return clean_text(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("services")
    @classmethod
    def validate_services(cls, v):
        return _check_services(v)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        return _check_availability(v)

    @field_validator("experience")
    @classmethod
    def validate_experience(cls, v):
        if v is not None and v not in EXPERIENCE_LEVELS:
            raise ValueError("Please select a valid experience range")
        return v

    @model_validator(mode="after")
    def conviction_details_required(self):
        if self.hasConvictions and not (self.convictionDetails or "").strip():
            raise ValueError("Conviction details are required if hasConvictions is true")
        return self


class WorkerProfileUpdate(BaseModel):
    """Operating profile edits for an approved worker"""

    services: Optional[list[str]] = None
    hourlyRate: Optional[float] = Field(None, ge=10, le=200)
    availability: Optional[list[str]] = None
    bio: Optional[str] = Field(None, max_length=500)
    isAvailable: Optional[bool] = None

    @field_validator("services")
    @classmethod
    def validate_services(cls, v):
        if v is not None and not v:
            raise ValueError("At least one service must be selected")
        return _check_services(v)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v):
        if v is not None and not v:
            raise ValueError("At least one availability slot must be selected")
        return _check_availability(v)

    @field_validator("bio")
    @classmethod
    def clean_bio(cls, v):
        return clean_text(v)


class WorkerDecision(BaseModel):
    status: Decision
    rejectionReason: Optional[str] = None

    @field_validator("rejectionReason")
    @classmethod
    def clean_reason(cls, v):
        return clean_text(v)


class RejectionRequest(BaseModel):
    rejectionReason: Optional[str] = None

    @field_validator("rejectionReason")
    @classmethod
    def clean_reason(cls, v):
        return clean_text(v)


DocumentType = Literal["id_document", "certification"]


# ============================================================================
# RESPONSES
# ============================================================================


class CertificationResponse(BaseModel):
    id: int
    name: Optional[str] = None
    url: str
    originalName: Optional[str] = None
    issueDate: Optional[date] = None
    expiryDate: Optional[date] = None
    uploadedAt: Optional[datetime] = None


class WorkerPublicResponse(BaseModel):
    """Worker as shown to customers; no documents or background check"""

    id: int
    name: str
    avatar: Optional[str] = None
    services: list[str]
    experience: Optional[str] = None
    hourlyRate: Optional[float] = None
    availability: list[str]
    bio: Optional[str] = None
    rating: dict[str, Any]
    stats: dict[str, Any]
    completionRate: int
    isAvailable: bool
    isVerified: bool

    @classmethod
    def from_model(cls, worker: Worker) -> "WorkerPublicResponse":
        user = worker.user
        return cls(
            id=worker.id,
            name=worker.full_name or (user.name if user else ""),
            avatar=user.avatar_url if user else None,
            services=worker.services or [],
            experience=worker.experience,
            hourlyRate=worker.hourly_rate,
            availability=worker.availability or [],
            bio=worker.bio,
            rating={"average": round(worker.rating_average or 0, 2), "count": worker.rating_count},
            stats={
                "totalBookings": worker.total_bookings,
                "completedBookings": worker.completed_bookings,
            },
            completionRate=worker.completion_rate,
            isAvailable=worker.is_available,
            isVerified=worker.is_verified,
        )


class WorkerApplicationResponse(BaseModel):
    """Full application for its owner and for admins"""

    id: int
    userId: int
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    fullName: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    services: list[str]
    experience: Optional[str] = None
    hourlyRate: Optional[float] = None
    availability: list[str]
    bio: Optional[str] = None
    documents: dict[str, Any]
    backgroundCheck: dict[str, Any]
    applicationStatus: str
    submittedAt: Optional[datetime] = None
    approvedAt: Optional[datetime] = None
    approvedBy: Optional[int] = None
    rejectionReason: Optional[str] = None
    rating: dict[str, Any]
    stats: dict[str, Any]
    completionRate: int
    isAvailable: bool
    isVerified: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, worker: Worker) -> "WorkerApplicationResponse":
        id_document = None
        if worker.id_document_url:
            id_document = {
                "url": worker.id_document_url,
                "originalName": worker.id_document_original_name,
                "uploadedAt": worker.id_document_uploaded_at,
                "verified": worker.id_document_verified,
            }
        return cls(
            id=worker.id,
            userId=worker.user_id,
            firstName=worker.first_name,
            lastName=worker.last_name,
            fullName=worker.full_name,
            email=worker.email,
            phone=worker.phone,
            address=worker.address,
            services=worker.services or [],
            experience=worker.experience,
            hourlyRate=worker.hourly_rate,
            availability=worker.availability or [],
            bio=worker.bio,
            documents={
                "idDocument": id_document,
                "certifications": [
                    CertificationResponse(
                        id=cert.id,
                        name=cert.name,
                        url=cert.url,
                        originalName=cert.original_name,
                        issueDate=cert.issue_date,
                        expiryDate=cert.expiry_date,
                        uploadedAt=cert.uploaded_at,
                    )
                    for cert in worker.certifications
                ],
            },
            backgroundCheck={
                "hasConvictions": worker.has_convictions,
                "convictionDetails": worker.conviction_details,
                "status": worker.background_check_status,
                "notes": worker.background_check_notes,
                "completedAt": worker.background_check_completed_at,
            },
            applicationStatus=worker.application_status,
            submittedAt=worker.submitted_at,
            approvedAt=worker.approved_at,
            approvedBy=worker.approved_by,
            rejectionReason=worker.rejection_reason,
            rating={"average": round(worker.rating_average or 0, 2), "count": worker.rating_count},
            stats={
                "totalBookings": worker.total_bookings,
                "completedBookings": worker.completed_bookings,
                "cancelledBookings": worker.cancelled_bookings,
                "totalEarnings": worker.total_earnings,
                "responseRate": worker.response_rate,
            },
            completionRate=worker.completion_rate,
            isAvailable=worker.is_available,
            isVerified=worker.is_verified,
            createdAt=worker.created_at,
            updatedAt=worker.updated_at,
        )
