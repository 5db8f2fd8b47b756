import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .exceptions import ValidationError

USER_ROLES = ("user", "worker", "admin")

OTP_PURPOSES = ("email-verification", "password-reset", "login")

WORKER_SERVICES = (
    "cleaning",
    "cooking",
    "laundry",
    "plumbing",
    "electrical",
    "gardening",
    "handyman",
    "painting",
)
EXPERIENCE_LEVELS = ("0-1", "1-3", "3-5", "5-10", "10+")
APPLICATION_STATUSES = ("incomplete", "pending", "approved", "rejected")
BACKGROUND_CHECK_STATUSES = ("pending", "approved", "rejected")
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
# Day periods a worker can declare, as [start, end) in HH:MM
DAY_PERIODS = {
    "Morning": ("06:00", "12:00"),
    "Afternoon": ("12:00", "17:00"),
    "Evening": ("17:00", "22:00"),
}
AVAILABILITY_SLOTS = tuple(f"{day} {period}" for day in WEEKDAYS for period in DAY_PERIODS)

SERVICE_CATEGORIES = (
    "cleaning",
    "plumbing",
    "electrical",
    "gardening",
    "cooking",
    "handyman",
    "painting",
    "automotive",
)

BOOKING_STATUSES = ("pending", "confirmed", "in-progress", "completed", "cancelled")
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed", "in-progress")
PAYMENT_STATUSES = ("pending", "paid", "refunded")


def one_of(column: str, values: tuple, name: str) -> CheckConstraint:
    allowed = ", ".join(f"'{v}'" for v in values)
    return CheckConstraint(f"{column} IN ({allowed})", name=name)


def generate_booking_code() -> str:
    """Human-readable booking code: HH + base36 timestamp + 4 random chars"""
    alphabet = string.digits + string.ascii_uppercase
    millis = int(time.time() * 1000)
    stamp = ""
    while millis:
        millis, rem = divmod(millis, 36)
        stamp = alphabet[rem] + stamp
    suffix = "".join(secrets.choice(alphabet) for _ in range(4))
    return f"HH{stamp}{suffix}"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (one_of("role", USER_ROLES, "ck_users_role"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Always stored lowercase
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    role = Column(String(20), default="user", nullable=False, index=True)
    avatar_url = Column(String(500), nullable=True)
    bio = Column(String(500), nullable=True)
    address = Column(JSON, nullable=True)  # street, city, state, zipCode, country, fullAddress
    location = Column(JSON, default=lambda: [0, 0], nullable=False)  # [longitude, latitude]
    is_email_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    preferences = Column(
        JSON,
        default=lambda: {"emailNotifications": True, "smsNotifications": False, "marketingEmails": False},
        nullable=False,
    )
    total_bookings = Column(Integer, default=0, nullable=False)
    rating_average = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker_profile = relationship("Worker", back_populates="user", uselist=False, foreign_keys="Worker.user_id")


class OTP(Base):
    """Short-lived single-use code scoped to an email and a purpose"""

    __tablename__ = "otps"
    __table_args__ = (one_of("purpose", OTP_PURPOSES, "ck_otps_purpose"),)

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    purpose = Column(String(30), nullable=False)
    code = Column(String(10), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Worker(Base):
    __tablename__ = "workers"
    __table_args__ = (
        one_of("application_status", APPLICATION_STATUSES, "ck_workers_application_status"),
        one_of("background_check_status", BACKGROUND_CHECK_STATUSES, "ck_workers_background_check_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)

    # Contact details captured by the application wizard
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)

    services = Column(JSON, default=list, nullable=False)
    experience = Column(String(10), nullable=True)
    hourly_rate = Column(Float, nullable=True)
    availability = Column(JSON, default=list, nullable=False)  # "<Weekday> <Period>" slots
    bio = Column(String(500), nullable=True)

    # Government ID document (single slot, replaced on re-upload)
    id_document_url = Column(String(1000), nullable=True)
    id_document_public_id = Column(String(500), nullable=True)
    id_document_original_name = Column(String(255), nullable=True)
    id_document_uploaded_at = Column(DateTime, nullable=True)
    id_document_verified = Column(Boolean, default=False, nullable=False)

    # Background check
    has_convictions = Column(Boolean, default=False, nullable=False)
    conviction_details = Column(Text, default="", nullable=True)
    background_check_status = Column(String(20), default="pending", nullable=False)
    background_check_notes = Column(Text, nullable=True)
    background_check_completed_at = Column(DateTime, nullable=True)

    application_status = Column(String(20), default="incomplete", nullable=False, index=True)
    submitted_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    rating_average = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)

    total_bookings = Column(Integer, default=0, nullable=False)
    completed_bookings = Column(Integer, default=0, nullable=False)
    cancelled_bookings = Column(Integer, default=0, nullable=False)
    total_earnings = Column(Float, default=0.0, nullable=False)
    response_rate = Column(Float, default=100.0, nullable=False)

    is_available = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="worker_profile", foreign_keys=[user_id])
    certifications = relationship(
        "WorkerCertification",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by="WorkerCertification.id",
    )
    bookings = relationship("Booking", back_populates="worker")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def completion_rate(self) -> int:
        if not self.total_bookings:
            return 100
        return round(self.completed_bookings / self.total_bookings * 100)

    def missing_submission_fields(self) -> list[str]:
        """Fields that must be present before the application can sit in review"""
        missing = [
            field
            for field in ("first_name", "last_name", "email", "phone", "address")
            if not getattr(self, field)
        ]
        if not self.services:
            missing.append("services")
        if not self.availability:
            missing.append("availability")
        if not self.id_document_url:
            missing.append("id_document")
        return missing


@event.listens_for(Worker, "before_insert")
@event.listens_for(Worker, "before_update")
def validate_pending_worker(_mapper, _connection, target: Worker):
    """A worker row can only be persisted as pending when the application is complete"""
    if target.application_status != "pending":
        return
    missing = target.missing_submission_fields()
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details=[{"field": field, "message": "Required for submission"} for field in missing],
        )


class WorkerCertification(Base):
    __tablename__ = "worker_certifications"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(255), nullable=True)
    url = Column(String(1000), nullable=False)
    public_id = Column(String(500), nullable=False)
    original_name = Column(String(255), nullable=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    uploaded_at = Column(DateTime, server_default=func.now())

    worker = relationship("Worker", back_populates="certifications")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    title = Column(String(100), nullable=True)
    description = Column(String(500), nullable=False)
    category = Column(String(30), nullable=False, index=True)
    provider = Column(String(100), nullable=True)
    location = Column(String(100), nullable=True)
    price_min = Column(Float, nullable=False)
    price_max = Column(Float, nullable=False)
    duration_min = Column(Integer, nullable=False)  # minutes
    duration_max = Column(Integer, nullable=False)  # minutes
    image = Column(String(1000), default="", nullable=True)
    icon = Column(String(100), default="", nullable=True)
    requirements = Column(JSON, default=list, nullable=False)
    includes = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    popularity = Column(Integer, default=0, nullable=False)
    average_rating = Column(Float, default=0.0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="service")


@dataclass(frozen=True)
class RegisteredCustomer:
    user_id: int


@dataclass(frozen=True)
class GuestCustomer:
    name: str
    email: str
    phone: str
    address: str


Customer = Union[RegisteredCustomer, GuestCustomer]


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        one_of("status", BOOKING_STATUSES, "ck_bookings_status"),
        one_of("payment_status", PAYMENT_STATUSES, "ck_bookings_payment_status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_code = Column(String(32), unique=True, index=True, nullable=False, default=generate_booking_code)
    service_id = Column(Integer, ForeignKey("services.id"), index=True, nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.id"), index=True, nullable=False)

    # Customer: either a registered user or embedded guest contact, never both
    customer_user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=True)
    guest_name = Column(String(100), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(30), nullable=True)
    guest_address = Column(String(500), nullable=True)

    scheduled_date = Column(Date, index=True, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM

    location_address = Column(String(500), nullable=False)
    location_coordinates = Column(JSON, nullable=False)  # [longitude, latitude]
    location_instructions = Column(Text, nullable=True)

    base_price = Column(Float, nullable=False)
    additional_charges = Column(JSON, default=list, nullable=False)  # [{"description", "amount"}]
    total_amount = Column(Float, nullable=False)

    status = Column(String(20), default="pending", nullable=False, index=True)
    payment_status = Column(String(20), default="pending", nullable=False)  # Not driven by any gateway

    customer_notes = Column(Text, nullable=True)
    worker_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    review_rating = Column(Integer, nullable=True)
    review_comment = Column(Text, nullable=True)
    review_date = Column(DateTime, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="bookings")
    worker = relationship("Worker", back_populates="bookings")
    customer_user = relationship("User", foreign_keys=[customer_user_id])
    timeline = relationship(
        "BookingTimelineEntry",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingTimelineEntry.id",
    )

    @property
    def customer(self) -> Customer:
        if self.customer_user_id is not None:
            return RegisteredCustomer(user_id=self.customer_user_id)
        return GuestCustomer(
            name=self.guest_name or "",
            email=self.guest_email or "",
            phone=self.guest_phone or "",
            address=self.guest_address or "",
        )

    @customer.setter
    def customer(self, value: Customer) -> None:
        if isinstance(value, RegisteredCustomer):
            self.customer_user_id = value.user_id
            self.guest_name = self.guest_email = self.guest_phone = self.guest_address = None
        else:
            self.customer_user_id = None
            self.guest_name = value.name
            self.guest_email = value.email.lower()
            self.guest_phone = value.phone
            self.guest_address = value.address

    @property
    def customer_email(self) -> Optional[str]:
        if self.customer_user_id is not None:
            return self.customer_user.email if self.customer_user else None
        return self.guest_email

    @property
    def customer_name(self) -> Optional[str]:
        if self.customer_user_id is not None:
            return self.customer_user.name if self.customer_user else None
        return self.guest_name

    @property
    def has_review(self) -> bool:
        return self.review_rating is not None


class BookingTimelineEntry(Base):
    __tablename__ = "booking_timeline"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(String(20), nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    notes = Column(Text, nullable=True)
    timestamp = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="timeline")
