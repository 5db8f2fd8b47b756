"""Booking service - Booking creation, lifecycle and reviews"""

import logging
from datetime import datetime
from threading import Lock
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import (
    AlreadyExistsError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ...models import Booking, GuestCustomer, RegisteredCustomer, Service, User, Worker
from ...notifications import NotificationKind
from .repository import BookingRepository
from .rules import calculate_total, duration_minutes, is_within_availability
from .schemas import BookingCreate, booking_email_context
from .state_machine import ActorRole, BookingStatus, resolve_actor_role, transition

logger = logging.getLogger(__name__)

# Striped locks serialize the conflict check and the insert per worker in this process;
# the worker row lock covers other processes on databases that support it
WORKER_LOCK_STRIPES = 64
_worker_locks = tuple(Lock() for _ in range(WORKER_LOCK_STRIPES))


def worker_lock(worker_id: int) -> Lock:
    return _worker_locks[worker_id % WORKER_LOCK_STRIPES]


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.repo = BookingRepository()
        self.notifier = notifier

    def _notify(self, kind: NotificationKind, email: Optional[str], name: Optional[str], **context) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch(kind, email, name, **context)
        except Exception as e:
            # Delivery is best-effort; the booking change is already committed
            logger.error(f"❌ Failed to queue {kind.value} notification: {e}")

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_booking(self, data: BookingCreate, actor: Optional[User]) -> Booking:
        service = self.db.query(Service).filter(Service.id == data.serviceId).first()
        if not service or not service.is_active:
            raise NotFoundError("Service not found")

        if actor is not None:
            customer = RegisteredCustomer(user_id=actor.id)
        else:
            guest = data.guestInfo
            missing = guest.missing_fields() if guest else ["name", "email", "phone", "address"]
            if missing:
                raise ValidationError(
                    "Complete guest info required: name, email, phone, address",
                    details=[{"field": f"guestInfo.{field}", "message": "Required"} for field in missing],
                )
            customer = GuestCustomer(name=guest.name, email=guest.email, phone=guest.phone, address=guest.address)

        start, end = data.scheduledTime.start, data.scheduledTime.end

        with worker_lock(data.workerId):
            try:
                worker = self.repo.lock_worker(self.db, data.workerId)
                if not worker or worker.application_status != "approved":
                    raise NotFoundError("Worker not found or not approved")
                if not (worker.is_available and worker.user and worker.user.is_active):
                    raise NotFoundError("Worker is not accepting bookings")

                if not is_within_availability(worker.availability or [], data.scheduledDate, start, end):
                    raise ConflictError("Worker is not available at the requested time")

                conflict = self.repo.find_conflicting_booking(
                    self.db, worker.id, data.scheduledDate, start, end
                )
                if conflict:
                    logger.info(
                        f"⚠️ Slot conflict for worker {worker.id} on {data.scheduledDate} "
                        f"{start}-{end} with {conflict.booking_code}"
                    )
                    raise ConflictError("Worker already has a booking at this time")

                hourly_rate = worker.hourly_rate or 0
                booking = Booking(
                    service_id=service.id,
                    worker_id=worker.id,
                    scheduled_date=data.scheduledDate,
                    start_time=start,
                    end_time=end,
                    location_address=data.location.address,
                    location_coordinates=data.location.coordinates,
                    location_instructions=data.location.instructions,
                    base_price=hourly_rate,
                    additional_charges=[],
                    total_amount=calculate_total(hourly_rate, duration_minutes(start, end)),
                    status=BookingStatus.PENDING.value,
                    customer_notes=data.notes or "",
                )
                booking.customer = customer
                self.repo.add_booking(self.db, booking)
                self.repo.add_timeline_entry(
                    self.db, booking, BookingStatus.PENDING.value, actor.id if actor else None, "Booking created"
                )

                self.repo.increment_worker_stats(self.db, worker.id, total=1)
                self.repo.increment_service_popularity(self.db, service.id)
                if isinstance(customer, RegisteredCustomer):
                    self.repo.increment_user_bookings(self.db, customer.user_id)

                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        booking = self.repo.get_booking(self.db, booking.id)
        logger.info(f"✅ Booking {booking.booking_code} created for worker {booking.worker_id}")

        context = booking_email_context(booking)
        self._notify(
            NotificationKind.BOOKING_CONFIRMATION,
            booking.customer_email,
            booking.customer_name,
            booking=context,
        )
        worker = booking.worker
        self._notify(
            NotificationKind.BOOKING_NOTIFICATION,
            worker.user.email if worker.user else worker.email,
            worker.full_name or (worker.user.name if worker.user else None),
            booking=context,
        )
        return booking

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _actor_role(self, booking: Booking, user: User) -> Optional[ActorRole]:
        return resolve_actor_role(
            user.id,
            user.role,
            booking.worker.user_id if booking.worker else None,
            booking.customer_user_id,
        )

    def get_booking(self, booking_id: int, user: User) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if self._actor_role(booking, user) is None:
            raise ForbiddenError("Not authorized to view this booking")
        return booking

    def lookup_by_code(self, code: str, email: Optional[str]) -> Booking:
        if not email or not email.strip():
            raise ValidationError("Email is required to look up a booking")

        booking = self.repo.get_booking_by_code(self.db, code.strip().upper())
        if not booking:
            raise NotFoundError("Booking not found")

        customer_email = booking.customer_email or ""
        if customer_email.lower() != email.strip().lower():
            logger.warning(f"⚠️ Booking lookup email mismatch for {booking.booking_code}")
            raise ForbiddenError("Email does not match booking records")
        return booking

    def list_my_bookings(self, user: User, status: Optional[str], page: int, limit: int):
        return self.repo.list_customer_bookings(self.db, user.id, status, page, limit)

    def list_worker_bookings(self, user: User, status: Optional[str], page: int, limit: int):
        worker = self.db.query(Worker).filter(Worker.user_id == user.id).first()
        if not worker:
            raise NotFoundError("Worker profile not found")
        return self.repo.list_worker_bookings(self.db, worker.id, status, page, limit)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_status(self, booking_id: int, requested: str, actor: User, notes: Optional[str] = None) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        role = self._actor_role(booking, actor)
        if role is None:
            raise ForbiddenError("Not authorized to update this booking")

        previous = booking.status
        new_status = transition(previous, role, requested)

        try:
            if not self.repo.compare_and_set_status(self.db, booking.id, previous, new_status.value):
                raise InvalidTransitionError(previous, new_status.value)
            self.repo.add_timeline_entry(self.db, booking, new_status.value, actor.id, notes)

            if new_status == BookingStatus.COMPLETED:
                self.repo.increment_worker_stats(
                    self.db, booking.worker_id, completed=1, earnings=booking.total_amount or 0
                )
            elif new_status == BookingStatus.CANCELLED:
                booking.cancellation_reason = notes or "No reason provided"
                booking.cancelled_by = actor.id
                booking.cancelled_at = datetime.utcnow()
                self.repo.increment_worker_stats(self.db, booking.worker_id, cancelled=1)

            if notes and role == ActorRole.WORKER:
                booking.worker_notes = notes
            elif notes and role == ActorRole.ADMIN:
                booking.admin_notes = notes

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        booking = self.repo.get_booking(self.db, booking.id)
        logger.info(f"✅ Booking {booking.booking_code}: {previous} -> {new_status.value} by {role.value}")

        notify_customer = (new_status == BookingStatus.CONFIRMED and role == ActorRole.WORKER) or (
            new_status == BookingStatus.COMPLETED
        )
        if notify_customer:
            self._notify(
                NotificationKind.BOOKING_STATUS_UPDATE,
                booking.customer_email,
                booking.customer_name,
                booking=booking_email_context(booking),
                status=new_status.value,
            )
        return booking

    def add_review(self, booking_id: int, rating: int, comment: Optional[str], actor: User) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        if booking.customer_user_id is None or booking.customer_user_id != actor.id:
            raise ForbiddenError("Only the customer can review this booking")
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidStateError("Can only review completed bookings")
        if booking.has_review:
            raise AlreadyExistsError("Booking has already been reviewed")

        try:
            if not self.repo.set_review_if_absent(self.db, booking.id, rating, comment):
                raise AlreadyExistsError("Booking has already been reviewed")
            self.repo.apply_worker_rating(self.db, booking.worker_id, rating)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"⭐ Review {rating}/5 added to booking {booking.booking_code}")
        return self.repo.get_booking(self.db, booking.id)
