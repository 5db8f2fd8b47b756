"""Catalog service - Service catalog reads and admin management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import AlreadyExistsError, ConflictError, NotFoundError
from ...models import SERVICE_CATEGORIES, Service
from ..bookings.repository import BookingRepository
from .repository import ServiceRepository
from .schemas import CATEGORY_DETAILS, ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

# Request field -> model column, for the flat fields of ServiceUpdate
FIELD_MAP = {
    "name": "name",
    "title": "title",
    "description": "description",
    "category": "category",
    "provider": "provider",
    "location": "location",
    "image": "image",
    "icon": "icon",
    "requirements": "requirements",
    "includes": "includes",
    "isActive": "is_active",
}


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRepository()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_services(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        active: Optional[bool] = None,
        sort_by: str = "averageRating",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Service], int]:
        return self.repo.list_services(self.db, category, search, price_min, price_max, active, sort_by, page, limit)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_by_id(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def get_categories(self) -> list[dict]:
        counts = self.repo.count_active_by_category(self.db)
        return [
            {
                "name": name,
                "label": CATEGORY_DETAILS[name][0],
                "description": CATEGORY_DETAILS[name][1],
                "serviceCount": counts.get(name, 0),
            }
            for name in SERVICE_CATEGORIES
        ]

    def create_service(self, data: ServiceCreate) -> Service:
        if self.repo.get_by_name(self.db, data.name):
            raise AlreadyExistsError("Service with this name already exists")

        service = self.repo.create_service(
            self.db,
            name=data.name,
            title=data.title,
            description=data.description,
            category=data.category,
            provider=data.provider,
            location=data.location,
            price_min=data.basePrice.min,
            price_max=data.basePrice.max,
            duration_min=data.duration.min,
            duration_max=data.duration.max,
            image=data.image or "",
            icon=data.icon or "",
            requirements=data.requirements,
            includes=data.includes,
            is_active=data.isActive,
        )
        self._commit()
        self.db.refresh(service)
        logger.info(f"✅ Created service {service.id} ({service.name})")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)

        if data.name and data.name.strip().lower() != service.name.lower():
            existing = self.repo.get_by_name(self.db, data.name)
            if existing and existing.id != service.id:
                raise AlreadyExistsError("Service with this name already exists")

        for field, column in FIELD_MAP.items():
            value = getattr(data, field)
            if value is not None:
                setattr(service, column, value)
        if data.basePrice is not None:
            service.price_min = data.basePrice.min
            service.price_max = data.basePrice.max
        if data.duration is not None:
            service.duration_min = data.duration.min
            service.duration_max = data.duration.max

        self._commit()
        self.db.refresh(service)
        logger.info(f"✅ Updated service {service.id}")
        return service

    def delete_service(self, service_id: int) -> bool:
        """
        Remove a service from the catalog.

        Returns:
            True when the row was deleted, False when it was only deactivated
            because past bookings still reference it

        Raises:
            ConflictError: Pending, confirmed or in-progress bookings reference the service
        """
        service = self.get_service(service_id)

        if BookingRepository.count_active_for_service(self.db, service.id):
            raise ConflictError("Cannot delete service with active bookings")

        if BookingRepository.count_for_service(self.db, service.id):
            service.is_active = False
            self._commit()
            logger.info(f"🗄️ Deactivated service {service.id}; past bookings reference it")
            return False

        self.db.delete(service)
        self._commit()
        logger.info(f"🗑️ Deleted service {service_id}")
        return True
