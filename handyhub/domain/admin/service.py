"""Admin service - Dashboard aggregates and moderation listings"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, Service, User, Worker
from ..bookings.repository import BookingRepository
from ..users.repository import UserRepository
from ..workers.repository import WorkerRepository

logger = logging.getLogger(__name__)


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AdminService:
    """Read side of the admin moderation surface"""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, column, *criteria) -> int:
        return self.db.query(func.count(column)).filter(*criteria).scalar() or 0

    def top_services(self, limit: int = 5) -> list[dict]:
        rows = (
            self.db.query(Service, func.count(Booking.id).label("booking_count"))
            .join(Booking, Booking.service_id == Service.id)
            .group_by(Service.id)
            .order_by(func.count(Booking.id).desc(), Service.id.asc())
            .limit(limit)
            .all()
        )
        return [
            {"id": service.id, "name": service.name, "category": service.category, "count": count}
            for service, count in rows
        ]

    def get_dashboard(self) -> dict:
        since = month_start()
        monthly_revenue = (
            self.db.query(func.coalesce(func.sum(Booking.total_amount), 0))
            .filter(Booking.status == "completed", Booking.created_at >= since)
            .scalar()
        )
        stats = {
            "totalUsers": self._count(User.id, User.role == "user"),
            "totalWorkers": self._count(Worker.id),
            "totalBookings": self._count(Booking.id),
            "totalServices": self._count(Service.id),
            "pendingWorkers": self._count(Worker.id, Worker.application_status == "pending"),
            "monthlyBookings": self._count(Booking.id, Booking.created_at >= since),
            "monthlyRevenue": float(monthly_revenue or 0),
            "topServices": self.top_services(),
        }
        recent = BookingRepository.recent_bookings(self.db, limit=10)
        logger.debug(f"📊 Admin dashboard computed: {stats['totalBookings']} bookings total")
        return {"stats": stats, "recent_bookings": recent}

    def list_users(
        self, role: Optional[str], status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[User], int]:
        is_active = None if status in (None, "all") else status == "active"
        role = None if role == "all" else role
        return UserRepository.list_users(self.db, role, is_active, search, page, limit)

    def list_workers(
        self, status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[Worker], int]:
        status = None if status == "all" else status
        return WorkerRepository.list_workers(self.db, status, search, page, limit)

    def list_bookings(
        self, status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        status = None if status == "all" else status
        return BookingRepository.list_bookings(self.db, status, search, page, limit)
