"""Worker repository - Database operations for worker profiles and applications"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Booking, User, Worker, WorkerCertification


def _with_relations(query):
    return query.options(joinedload(Worker.user), selectinload(Worker.certifications))


class WorkerRepository:
    """Repository for worker database operations"""

    @staticmethod
    def get_by_id(db: Session, worker_id: int) -> Optional[Worker]:
        return _with_relations(db.query(Worker)).filter(Worker.id == worker_id).first()

    @staticmethod
    def get_by_user_id(db: Session, user_id: int) -> Optional[Worker]:
        return _with_relations(db.query(Worker)).filter(Worker.user_id == user_id).first()

    @staticmethod
    def create_draft(db: Session, user: User) -> Worker:
        """New incomplete application seeded from the account's contact details"""
        first_name, _, last_name = (user.name or "").partition(" ")
        worker = Worker(
            user_id=user.id,
            first_name=first_name or None,
            last_name=last_name or None,
            email=user.email,
            phone=user.phone,
            services=[],
            availability=[],
            application_status="incomplete",
        )
        db.add(worker)
        db.flush()
        return worker

    @staticmethod
    def add_certification(db: Session, worker: Worker, **data) -> WorkerCertification:
        certification = WorkerCertification(**data)
        worker.certifications.append(certification)
        db.flush()
        return certification

    @staticmethod
    def list_available(
        db: Session, service: Optional[str], page: int, limit: int
    ) -> tuple[list[Worker], int]:
        """Approved, available, verified workers of active accounts, best rated first"""
        query = (
            db.query(Worker)
            .join(User, Worker.user_id == User.id)
            .filter(
                Worker.application_status == "approved",
                Worker.is_available.is_(True),
                Worker.is_verified.is_(True),
                User.is_active.is_(True),
            )
        )
        workers = query.all()
        if service:
            # services is a JSON array; membership is filtered here to stay portable across backends
            workers = [w for w in workers if service in (w.services or [])]
        workers.sort(key=lambda w: (-(w.rating_average or 0), -(w.completed_bookings or 0), w.id))
        total = len(workers)
        start = (page - 1) * limit
        return workers[start : start + limit], total

    @staticmethod
    def list_workers(
        db: Session, status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[Worker], int]:
        query = db.query(Worker).join(User, Worker.user_id == User.id)
        if status:
            query = query.filter(Worker.application_status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Worker.first_name.ilike(pattern),
                    Worker.last_name.ilike(pattern),
                    Worker.email.ilike(pattern),
                    User.name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        total = query.count()
        items = (
            _with_relations(query)
            .order_by(Worker.submitted_at.desc(), Worker.created_at.desc(), Worker.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def recent_reviews(db: Session, worker_id: int, limit: int = 5) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service), joinedload(Booking.customer_user))
            .filter(Booking.worker_id == worker_id, Booking.review_rating.isnot(None))
            .order_by(Booking.review_date.desc(), Booking.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def monthly_stats(db: Session, worker_id: int, since: datetime) -> tuple[int, float]:
        """(bookings created since, earnings of completed bookings created since)"""
        bookings = (
            db.query(func.count(Booking.id))
            .filter(Booking.worker_id == worker_id, Booking.created_at >= since)
            .scalar()
        )
        earnings = (
            db.query(func.coalesce(func.sum(Booking.total_amount), 0.0))
            .filter(
                Booking.worker_id == worker_id,
                Booking.status == "completed",
                Booking.created_at >= since,
            )
            .scalar()
        )
        return bookings or 0, float(earnings or 0)
