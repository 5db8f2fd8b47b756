"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...models import Booking
from ...shared.validators import (
    normalize_hhmm,
    validate_coordinates,
    validate_email,
    validate_phone,
)
from ...utils.sanitization import clean_text
from .state_machine import BookingStatus


class ScheduledTime(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v):
        return normalize_hhmm(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end <= self.start:
            raise ValueError("End time must be after start time")
        return self


class BookingLocation(BaseModel):
    address: str
    coordinates: list[float]
    instructions: Optional[str] = None

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Address must be at least 10 characters long")
        return clean_text(v)

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v):
        return validate_coordinates(v)

    @field_validator("instructions")
    @classmethod
    def validate_instructions(cls, v):
        return clean_text(v)


class GuestInfo(BaseModel):
    """Contact details for a booking made without an account; completeness is checked by the service"""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not 2 <= len(v) <= 50:
            raise ValueError("Guest name must be between 2 and 50 characters")
        return clean_text(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return clean_text(v) if v else v

    def missing_fields(self) -> list[str]:
        return [name for name in ("name", "email", "phone", "address") if not getattr(self, name)]


class BookingCreate(BaseModel):
    serviceId: int
    workerId: int
    scheduledDate: date
    scheduledTime: ScheduledTime
    location: BookingLocation
    notes: Optional[str] = None
    guestInfo: Optional[GuestInfo] = None

    @field_validator("scheduledDate")
    @classmethod
    def not_in_past(cls, v):
        if v < date.today():
            raise ValueError("Scheduled date cannot be in the past")
        return v

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return clean_text(v)


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        return clean_text(v)


# ============================================================================
# RESPONSES
# ============================================================================


class TimelineEntryResponse(BaseModel):
    status: str
    updatedBy: Optional[int] = None
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


class BookingResponse(BaseModel):
    """Booking with service, worker and customer expanded"""

    id: int
    bookingCode: str
    service: Optional[dict[str, Any]] = None
    worker: Optional[dict[str, Any]] = None
    customer: dict[str, Any]
    scheduledDate: date
    scheduledTime: dict[str, str]
    location: dict[str, Any]
    pricing: dict[str, Any]
    status: str
    paymentStatus: str
    notes: dict[str, Optional[str]]
    timeline: list[TimelineEntryResponse] = []
    review: Optional[dict[str, Any]] = None
    cancellation: Optional[dict[str, Any]] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, booking: Booking, include_admin_notes: bool = False) -> "BookingResponse":
        service = booking.service
        worker = booking.worker

        if booking.customer_user_id is not None:
            user = booking.customer_user
            customer = {
                "type": "registered",
                "user": {
                    "id": booking.customer_user_id,
                    "name": user.name if user else None,
                    "email": user.email if user else None,
                    "phone": user.phone if user else None,
                },
            }
        else:
            customer = {
                "type": "guest",
                "guestInfo": {
                    "name": booking.guest_name,
                    "email": booking.guest_email,
                    "phone": booking.guest_phone,
                    "address": booking.guest_address,
                },
            }

        review = None
        if booking.has_review:
            review = {
                "rating": booking.review_rating,
                "comment": booking.review_comment,
                "reviewDate": booking.review_date,
            }

        cancellation = None
        if booking.status == BookingStatus.CANCELLED.value:
            cancellation = {
                "reason": booking.cancellation_reason,
                "cancelledBy": booking.cancelled_by,
                "cancelledAt": booking.cancelled_at,
            }

        notes = {"customer": booking.customer_notes, "worker": booking.worker_notes}
        if include_admin_notes:
            notes["admin"] = booking.admin_notes

        return cls(
            id=booking.id,
            bookingCode=booking.booking_code,
            service=(
                {
                    "id": service.id,
                    "name": service.name,
                    "title": service.title,
                    "category": service.category,
                    "provider": service.provider,
                }
                if service
                else None
            ),
            worker=(
                {
                    "id": worker.id,
                    "name": worker.full_name or (worker.user.name if worker.user else None),
                    "email": worker.user.email if worker.user else worker.email,
                    "phone": worker.phone,
                    "hourlyRate": worker.hourly_rate,
                    "rating": {"average": worker.rating_average, "count": worker.rating_count},
                }
                if worker
                else None
            ),
            customer=customer,
            scheduledDate=booking.scheduled_date,
            scheduledTime={"start": booking.start_time, "end": booking.end_time},
            location={
                "address": booking.location_address,
                "coordinates": booking.location_coordinates,
                "instructions": booking.location_instructions,
            },
            pricing={
                "basePrice": booking.base_price,
                "additionalCharges": booking.additional_charges or [],
                "totalAmount": booking.total_amount,
            },
            status=booking.status,
            paymentStatus=booking.payment_status,
            notes=notes,
            timeline=[
                TimelineEntryResponse(
                    status=entry.status,
                    updatedBy=entry.updated_by,
                    notes=entry.notes,
                    timestamp=entry.timestamp,
                )
                for entry in booking.timeline
            ],
            review=review,
            cancellation=cancellation,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )


def booking_email_context(booking: Booking) -> dict:
    """Plain values for email templates, detached from the ORM session"""
    return {
        "id": booking.id,
        "booking_code": booking.booking_code,
        "service_name": booking.service.name if booking.service else "",
        "worker_name": booking.worker.full_name if booking.worker else "",
        "customer_name": booking.customer_name or "",
        "customer_phone": booking.customer_user.phone if booking.customer_user else booking.guest_phone,
        "scheduled_date": booking.scheduled_date.strftime("%A, %B %d, %Y"),
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "address": booking.location_address,
        "total_amount": booking.total_amount,
        "notes": booking.customer_notes or "",
    }
