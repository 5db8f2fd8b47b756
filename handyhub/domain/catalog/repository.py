"""Catalog repository - Database operations for services"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Service

SORTABLE_COLUMNS = {
    "averageRating": Service.average_rating,
    "popularity": Service.popularity,
    "priceMin": Service.price_min,
    "createdAt": Service.created_at,
    "totalReviews": Service.total_reviews,
}


class ServiceRepository:
    """Repository for service catalog database operations"""

    @staticmethod
    def get_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[Service]:
        return db.query(Service).filter(func.lower(Service.name) == name.strip().lower()).first()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.flush()
        return service

    @staticmethod
    def list_services(
        db: Session,
        category: Optional[str],
        search: Optional[str],
        price_min: Optional[float],
        price_max: Optional[float],
        active: Optional[bool],
        sort_by: str,
        page: int,
        limit: int,
    ) -> tuple[list[Service], int]:
        query = db.query(Service)
        if category and category != "all":
            query = query.filter(Service.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(Service.name.ilike(pattern), Service.title.ilike(pattern), Service.description.ilike(pattern))
            )
        if price_min is not None:
            query = query.filter(Service.price_min >= price_min)
        if price_max is not None:
            query = query.filter(Service.price_max <= price_max)
        if active is not None:
            query = query.filter(Service.is_active.is_(active))

        total = query.count()
        sort_column = SORTABLE_COLUMNS.get(sort_by, Service.average_rating)
        services = (
            query.order_by(sort_column.desc(), Service.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return services, total

    @staticmethod
    def count_active_by_category(db: Session) -> dict[str, int]:
        rows = (
            db.query(Service.category, func.count(Service.id))
            .filter(Service.is_active.is_(True))
            .group_by(Service.category)
            .all()
        )
        return {category: count for category, count in rows}
