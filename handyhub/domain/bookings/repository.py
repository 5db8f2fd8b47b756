"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import ACTIVE_BOOKING_STATUSES, Booking, BookingTimelineEntry, Service, User, Worker


def _with_relations(query):
    return query.options(
        joinedload(Booking.service),
        joinedload(Booking.worker).joinedload(Worker.user),
        joinedload(Booking.customer_user),
        selectinload(Booking.timeline),
    )


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return _with_relations(db.query(Booking)).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_booking_by_code(db: Session, booking_code: str) -> Optional[Booking]:
        return _with_relations(db.query(Booking)).filter(Booking.booking_code == booking_code).first()

    @staticmethod
    def lock_worker(db: Session, worker_id: int) -> Optional[Worker]:
        """Row-lock the worker for the rest of the transaction (no-op on SQLite)"""
        return db.query(Worker).filter(Worker.id == worker_id).with_for_update().first()

    @staticmethod
    def find_conflicting_booking(
        db: Session, worker_id: int, scheduled_date: date, start_time: str, end_time: str
    ) -> Optional[Booking]:
        """
        First active booking of the worker on that date whose [start, end) window
        overlaps the requested one. Times are zero-padded HH:MM so string order is time order.
        """
        return (
            db.query(Booking)
            .filter(
                Booking.worker_id == worker_id,
                Booking.scheduled_date == scheduled_date,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.start_time < end_time,
                Booking.end_time > start_time,
            )
            .first()
        )

    @staticmethod
    def add_booking(db: Session, booking: Booking) -> Booking:
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def add_timeline_entry(
        db: Session, booking: Booking, status: str, updated_by: Optional[int], notes: Optional[str]
    ) -> BookingTimelineEntry:
        entry = BookingTimelineEntry(status=status, updated_by=updated_by, notes=notes)
        booking.timeline.append(entry)
        return entry

    @staticmethod
    def compare_and_set_status(db: Session, booking_id: int, expected: str, new_status: str) -> bool:
        """Move the status only if nobody changed it since it was read"""
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == expected)
            .update({Booking.status: new_status}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def set_review_if_absent(db: Session, booking_id: int, rating: int, comment: Optional[str]) -> bool:
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.review_rating.is_(None))
            .update(
                {
                    Booking.review_rating: rating,
                    Booking.review_comment: comment,
                    Booking.review_date: func.now(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    # ------------------------------------------------------------------
    # Atomic counter updates (single UPDATE statements, no read-modify-write)
    # ------------------------------------------------------------------

    @staticmethod
    def increment_worker_stats(
        db: Session,
        worker_id: int,
        total: int = 0,
        completed: int = 0,
        cancelled: int = 0,
        earnings: float = 0.0,
    ) -> None:
        values = {}
        if total:
            values[Worker.total_bookings] = Worker.total_bookings + total
        if completed:
            values[Worker.completed_bookings] = Worker.completed_bookings + completed
        if cancelled:
            values[Worker.cancelled_bookings] = Worker.cancelled_bookings + cancelled
        if earnings:
            values[Worker.total_earnings] = Worker.total_earnings + earnings
        if values:
            db.query(Worker).filter(Worker.id == worker_id).update(values, synchronize_session=False)

    @staticmethod
    def increment_service_popularity(db: Session, service_id: int) -> None:
        db.query(Service).filter(Service.id == service_id).update(
            {Service.popularity: Service.popularity + 1}, synchronize_session=False
        )

    @staticmethod
    def increment_user_bookings(db: Session, user_id: int) -> None:
        db.query(User).filter(User.id == user_id).update(
            {User.total_bookings: User.total_bookings + 1}, synchronize_session=False
        )

    @staticmethod
    def apply_worker_rating(db: Session, worker_id: int, rating: int) -> None:
        """Fold one rating into the running average; both columns read their pre-update values"""
        db.query(Worker).filter(Worker.id == worker_id).update(
            {
                Worker.rating_average: (Worker.rating_average * Worker.rating_count + rating)
                / (Worker.rating_count + 1.0),
                Worker.rating_count: Worker.rating_count + 1,
            },
            synchronize_session=False,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    @staticmethod
    def _paginate(query, page: int, limit: int) -> tuple[list[Booking], int]:
        total = query.order_by(None).count()
        items = (
            _with_relations(query)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def list_customer_bookings(
        db: Session, user_id: int, status: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        query = db.query(Booking).filter(Booking.customer_user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        return BookingRepository._paginate(query, page, limit)

    @staticmethod
    def list_worker_bookings(
        db: Session, worker_id: int, status: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        query = db.query(Booking).filter(Booking.worker_id == worker_id)
        if status:
            query = query.filter(Booking.status == status)
        return BookingRepository._paginate(query, page, limit)

    @staticmethod
    def list_bookings(
        db: Session, status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if search:
            query = query.filter(Booking.booking_code.ilike(f"%{search.strip()}%"))
        return BookingRepository._paginate(query, page, limit)

    @staticmethod
    def recent_bookings(db: Session, limit: int = 10, worker_id: Optional[int] = None) -> list[Booking]:
        query = db.query(Booking)
        if worker_id is not None:
            query = query.filter(Booking.worker_id == worker_id)
        return _with_relations(query).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()

    @staticmethod
    def count_active_for_service(db: Session, service_id: int) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.service_id == service_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .scalar()
        )

    @staticmethod
    def count_for_service(db: Session, service_id: int) -> int:
        return db.query(func.count(Booking.id)).filter(Booking.service_id == service_id).scalar()

    @staticmethod
    def count_active_for_customer(db: Session, user_id: int) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.customer_user_id == user_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .scalar()
        )

    @staticmethod
    def count_customer_bookings_by_status(db: Session, user_id: int, statuses: tuple[str, ...]) -> int:
        return (
            db.query(func.count(Booking.id))
            .filter(Booking.customer_user_id == user_id, Booking.status.in_(statuses))
            .scalar()
        )
