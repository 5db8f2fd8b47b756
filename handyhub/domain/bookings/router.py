"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user, require_roles
from ...database import get_db
from ...models import User
from ...notifications import NotificationDispatcher, get_notifier
from ...schemas import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ok, paginated
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate, ReviewCreate
from .service import BookingService
from .state_machine import BookingStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier)


@router.post("", status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking as a signed-in customer or as a guest"""
    booking = service.create_booking(data, current_user)
    return ok(data=BookingResponse.from_model(booking), message="Booking created successfully")


@router.get("/my-bookings")
async def get_my_bookings(
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    bookings, total = service.list_my_bookings(current_user, status.value if status else None, page, limit)
    return paginated([BookingResponse.from_model(b) for b in bookings], page, limit, total)


@router.get("/worker-bookings")
async def get_worker_bookings(
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(require_roles("worker")),
    service: BookingService = Depends(get_booking_service),
):
    bookings, total = service.list_worker_bookings(current_user, status.value if status else None, page, limit)
    return paginated([BookingResponse.from_model(b) for b in bookings], page, limit, total)


@router.get("/code/{booking_code}")
async def get_booking_by_code(
    booking_code: str,
    email: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Public lookup by booking code; the email must match the booking's customer"""
    booking = service.lookup_by_code(booking_code, email)
    return ok(data=BookingResponse.from_model(booking))


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id, current_user)
    return ok(data=BookingResponse.from_model(booking, include_admin_notes=current_user.role == "admin"))


@router.put("/{booking_id}/status")
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(booking_id, data.status.value, current_user, data.notes)
    return ok(data=BookingResponse.from_model(booking), message="Booking status updated successfully")


@router.post("/{booking_id}/review", status_code=201)
async def add_review(
    booking_id: int,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.add_review(booking_id, data.rating, data.comment, current_user)
    return ok(data=BookingResponse.from_model(booking), message="Review added successfully")
