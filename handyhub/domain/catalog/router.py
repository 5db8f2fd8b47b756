"""Catalog router - Public service catalog and admin service management"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_roles
from ...database import get_db
from ...models import User
from ...schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from .schemas import CategoryResponse, ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService

router = APIRouter(prefix="/services", tags=["Services"])

admin_only = require_roles("admin")


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def deletion_message(deleted: bool) -> str:
    return "Service deleted" if deleted else "Service deactivated because past bookings reference it"


@router.get("")
async def list_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    priceMin: Optional[float] = Query(None, ge=0),
    priceMax: Optional[float] = Query(None, ge=0),
    active: Optional[bool] = Query(None),
    sortBy: str = Query("averageRating"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: Optional[User] = Depends(get_optional_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Browse the catalog; only admins can see inactive services"""
    if not current_user or current_user.role != "admin":
        active = True
    services, total = service.list_services(category, search, priceMin, priceMax, active, sortBy, page, limit)
    return paginated([ServiceResponse.from_model(s) for s in services], page, limit, total)


@router.get("/categories")
async def get_categories(service: CatalogService = Depends(get_catalog_service)):
    return ok(data=[CategoryResponse(**category) for category in service.get_categories()])


@router.get("/{service_id}")
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return ok(data=ServiceResponse.from_model(service.get_service(service_id)))


@router.post("", status_code=201)
async def create_service(
    data: ServiceCreate,
    _: User = Depends(admin_only),
    service: CatalogService = Depends(get_catalog_service),
):
    created = service.create_service(data)
    return ok(data=ServiceResponse.from_model(created), message="Service created successfully")


@router.put("/{service_id}")
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    _: User = Depends(admin_only),
    service: CatalogService = Depends(get_catalog_service),
):
    updated = service.update_service(service_id, data)
    return ok(data=ServiceResponse.from_model(updated), message="Service updated successfully")


@router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    _: User = Depends(admin_only),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(message=deletion_message(service.delete_service(service_id)))
