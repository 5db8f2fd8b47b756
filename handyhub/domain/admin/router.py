"""Admin router - Dashboard, user and worker moderation, bookings and catalog management"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import User
from ...notifications import NotificationDispatcher, get_notifier
from ...schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from ..bookings.schemas import BookingResponse
from ..catalog.router import deletion_message, get_catalog_service
from ..catalog.schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from ..catalog.service import CatalogService
from ..users.router import get_user_service
from ..users.schemas import UserResponse, UserStatusUpdate
from ..users.service import UserService
from ..workers.schemas import RejectionRequest, WorkerApplicationResponse, WorkerDecision
from ..workers.service import WorkerService
from ..workers.vetting import Decision
from .service import AdminService

logger = logging.getLogger(__name__)

admin_only = require_roles("admin")

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(admin_only)])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


def get_vetting_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> WorkerService:
    return WorkerService(db, notifier)


# ============================================================================
# DASHBOARD
# ============================================================================


@router.get("/dashboard")
async def get_dashboard(service: AdminService = Depends(get_admin_service)):
    dashboard = service.get_dashboard()
    return ok(
        data={
            "stats": dashboard["stats"],
            "recentBookings": [BookingResponse.from_model(b) for b in dashboard["recent_bookings"]],
        }
    )


# ============================================================================
# USERS
# ============================================================================


@router.get("/users")
async def list_users(
    role: Optional[Literal["all", "user", "worker", "admin"]] = Query(None),
    status: Optional[Literal["all", "active", "inactive"]] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: AdminService = Depends(get_admin_service),
):
    users, total = service.list_users(role, status, search, page, limit)
    return paginated([UserResponse.from_model(u) for u in users], page, limit, total)


@router.put("/users/{user_id}/status")
async def toggle_user_status(
    user_id: int,
    data: Optional[UserStatusUpdate] = None,
    admin: User = Depends(admin_only),
    service: UserService = Depends(get_user_service),
):
    """Toggle is_active, or set it explicitly when isActive is sent"""
    user = service.toggle_status(user_id, admin, data.isActive if data else None)
    state = "activated" if user.is_active else "deactivated"
    return ok(data=UserResponse.from_model(user), message=f"User {state} successfully")


# ============================================================================
# WORKERS
# ============================================================================


@router.get("/workers")
async def list_workers(
    status: Optional[Literal["all", "incomplete", "pending", "approved", "rejected"]] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: AdminService = Depends(get_admin_service),
):
    workers, total = service.list_workers(status, search, page, limit)
    return paginated([WorkerApplicationResponse.from_model(w) for w in workers], page, limit, total)


@router.get("/workers/pending")
async def list_pending_workers(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: AdminService = Depends(get_admin_service),
):
    workers, total = service.list_workers("pending", None, page, limit)
    return paginated([WorkerApplicationResponse.from_model(w) for w in workers], page, limit, total)


@router.put("/workers/{worker_id}/status")
async def update_worker_status(
    worker_id: int,
    data: WorkerDecision,
    admin: User = Depends(admin_only),
    service: WorkerService = Depends(get_vetting_service),
):
    worker = service.decide(worker_id, data.status, admin, data.rejectionReason)
    return ok(
        data=WorkerApplicationResponse.from_model(worker),
        message=f"Worker application {data.status.value} successfully",
    )


@router.put("/workers/{worker_id}/approve")
async def approve_worker(
    worker_id: int,
    admin: User = Depends(admin_only),
    service: WorkerService = Depends(get_vetting_service),
):
    worker = service.decide(worker_id, Decision.APPROVED, admin)
    return ok(data=WorkerApplicationResponse.from_model(worker), message="Worker application approved successfully")


@router.put("/workers/{worker_id}/reject")
async def reject_worker(
    worker_id: int,
    data: Optional[RejectionRequest] = None,
    admin: User = Depends(admin_only),
    service: WorkerService = Depends(get_vetting_service),
):
    reason = data.rejectionReason if data else None
    worker = service.decide(worker_id, Decision.REJECTED, admin, reason)
    return ok(data=WorkerApplicationResponse.from_model(worker), message="Worker application rejected successfully")


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings")
async def list_bookings(
    status: Optional[Literal["all", "pending", "confirmed", "in-progress", "completed", "cancelled"]] = Query(None),
    search: Optional[str] = Query(None, max_length=50),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: AdminService = Depends(get_admin_service),
):
    bookings, total = service.list_bookings(status, search, page, limit)
    return paginated(
        [BookingResponse.from_model(b, include_admin_notes=True) for b in bookings], page, limit, total
    )


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services")
async def list_services(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: CatalogService = Depends(get_catalog_service),
):
    services, total = service.list_services(
        category=category, search=search, active=active, sort_by="createdAt", page=page, limit=limit
    )
    return paginated([ServiceResponse.from_model(s) for s in services], page, limit, total)


@router.post("/services", status_code=201)
async def create_service(data: ServiceCreate, service: CatalogService = Depends(get_catalog_service)):
    created = service.create_service(data)
    return ok(data=ServiceResponse.from_model(created), message="Service created successfully")


@router.put("/services/{service_id}")
async def update_service(
    service_id: int, data: ServiceUpdate, service: CatalogService = Depends(get_catalog_service)
):
    updated = service.update_service(service_id, data)
    return ok(data=ServiceResponse.from_model(updated), message="Service updated successfully")


@router.delete("/services/{service_id}")
async def delete_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return ok(message=deletion_message(service.delete_service(service_id)))
