"""Worker router - Application wizard, worker profile and public listing endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...media_store import MediaStore, get_media_store
from ...models import WORKER_SERVICES, User
from ...notifications import NotificationDispatcher, get_notifier
from ...schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from ..bookings.schemas import BookingResponse
from .schemas import (
    DocumentType,
    WorkerApplicationResponse,
    WorkerApplicationUpdate,
    WorkerProfileUpdate,
    WorkerPublicResponse,
)
from .service import WorkerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workers", tags=["Workers"])

# Accounts that may own an application: applicants and approved workers
applicant = require_roles("user", "worker")


def get_worker_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    media_store: MediaStore = Depends(get_media_store),
) -> WorkerService:
    """Dependency injection for WorkerService"""
    return WorkerService(db, notifier, media_store)


@router.get("/available")
async def get_available_workers(
    service: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    worker_service: WorkerService = Depends(get_worker_service),
):
    """Public list of bookable workers, optionally filtered by service"""
    if service and service not in WORKER_SERVICES:
        service = None
    workers, total = worker_service.list_available(service, page, limit)
    return paginated([WorkerPublicResponse.from_model(w) for w in workers], page, limit, total)


# ============================================================================
# APPLICATION WIZARD
# ============================================================================


@router.get("/application")
async def get_my_application(
    current_user: User = Depends(applicant),
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.get_application(current_user)
    return ok(data=WorkerApplicationResponse.from_model(worker))


@router.put("/application")
async def save_application(
    data: WorkerApplicationUpdate,
    current_user: User = Depends(applicant),
    service: WorkerService = Depends(get_worker_service),
):
    """Save application progress; may be called any number of times before submitting"""
    worker = service.save_application(current_user, data)
    return ok(data=WorkerApplicationResponse.from_model(worker), message="Application saved successfully")


@router.post("/application/submit")
async def submit_application(
    current_user: User = Depends(applicant),
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.submit_application(current_user)
    return ok(
        data=WorkerApplicationResponse.from_model(worker),
        message="Application submitted for review successfully",
    )


@router.post("/application/documents", status_code=201)
async def upload_document(
    document_type: DocumentType = Form(...),
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    current_user: User = Depends(applicant),
    service: WorkerService = Depends(get_worker_service),
):
    """Upload the government ID (replaces any previous one) or add a certification"""
    data = await file.read()
    worker = service.upload_document(
        current_user,
        document_type,
        file.filename or "document",
        file.content_type or "",
        data,
        name=name,
    )
    return ok(data=WorkerApplicationResponse.from_model(worker), message="Document uploaded successfully")


# ============================================================================
# APPROVED WORKER
# ============================================================================


@router.get("/me")
async def get_my_profile(
    current_user: User = Depends(require_roles("worker")),
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.get_my_profile(current_user)
    return ok(data=WorkerApplicationResponse.from_model(worker))


@router.put("/me")
async def update_my_profile(
    data: WorkerProfileUpdate,
    current_user: User = Depends(require_roles("worker")),
    service: WorkerService = Depends(get_worker_service),
):
    worker = service.update_my_profile(current_user, data)
    return ok(data=WorkerApplicationResponse.from_model(worker), message="Worker profile updated successfully")


@router.get("/me/dashboard")
async def get_dashboard(
    current_user: User = Depends(require_roles("worker")),
    service: WorkerService = Depends(get_worker_service),
):
    dashboard = service.get_dashboard(current_user)
    return ok(
        data={
            "worker": WorkerApplicationResponse.from_model(dashboard["worker"]),
            "stats": dashboard["stats"],
            "recentBookings": [BookingResponse.from_model(b) for b in dashboard["recent_bookings"]],
        }
    )


@router.get("/{worker_id}")
async def get_worker_public_profile(
    worker_id: int,
    service: WorkerService = Depends(get_worker_service),
):
    worker, reviews = service.get_public_profile(worker_id)
    return ok(
        data={
            "worker": WorkerPublicResponse.from_model(worker),
            "recentReviews": [
                {
                    "rating": b.review_rating,
                    "comment": b.review_comment,
                    "reviewDate": b.review_date,
                    "service": b.service.name if b.service else None,
                    "customerName": b.customer_user.name if b.customer_user else b.guest_name,
                }
                for b in reviews
            ],
        }
    )
