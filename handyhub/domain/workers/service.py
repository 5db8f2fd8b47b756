"""Worker service - Application wizard, vetting decisions and worker profiles"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...media_store import WORKER_DOCUMENTS_FOLDER, MediaStore, MediaStoreError, validate_document_file
from ...models import User, Worker
from ...notifications import NotificationKind
from ..bookings.repository import BookingRepository
from .repository import WorkerRepository
from .schemas import WorkerApplicationUpdate, WorkerProfileUpdate
from .vetting import (
    ApplicationStatus,
    Decision,
    ensure_decidable,
    ensure_editable,
    ensure_submittable,
    status_after_edit,
)

logger = logging.getLogger(__name__)

APPLICATION_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "services": "services",
    "experience": "experience",
    "hourlyRate": "hourly_rate",
    "availability": "availability",
    "bio": "bio",
    "hasConvictions": "has_convictions",
    "convictionDetails": "conviction_details",
}

PROFILE_FIELDS = {
    "services": "services",
    "hourlyRate": "hourly_rate",
    "availability": "availability",
    "bio": "bio",
    "isAvailable": "is_available",
}


class WorkerService:
    """Service layer for worker business logic"""

    def __init__(self, db: Session, notifier=None, media_store: Optional[MediaStore] = None):
        self.db = db
        self.repo = WorkerRepository()
        self.notifier = notifier
        self.media_store = media_store

    def _notify(self, kind: NotificationKind, worker: Worker, **context) -> None:
        if self.notifier is None:
            return
        email = worker.email or (worker.user.email if worker.user else None)
        name = worker.full_name or (worker.user.name if worker.user else None)
        try:
            self.notifier.dispatch(kind, email, name, **context)
        except Exception as e:
            logger.error(f"❌ Failed to queue {kind.value} notification: {e}")

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def _clear_id_document(worker: Worker) -> None:
        worker.id_document_url = None
        worker.id_document_public_id = None
        worker.id_document_original_name = None
        worker.id_document_uploaded_at = None
        worker.id_document_verified = False

    # ------------------------------------------------------------------
    # Application wizard
    # ------------------------------------------------------------------

    def get_application(self, user: User) -> Worker:
        worker = self.repo.get_by_user_id(self.db, user.id)
        if not worker:
            raise NotFoundError("No worker application found")
        return worker

    def save_application(self, user: User, data: WorkerApplicationUpdate) -> Worker:
        """Create the draft on first touch and apply a partial update"""
        worker = self.repo.get_by_user_id(self.db, user.id)
        if worker is None:
            worker = self.repo.create_draft(self.db, user)
            logger.info(f"📝 Created draft worker application for user {user.id}")
        else:
            ensure_editable(worker.application_status)

        for key, value in data.model_dump(exclude_unset=True).items():
            column = APPLICATION_FIELDS[key]
            if value is None and column in ("services", "availability"):
                value = []
            setattr(worker, column, value)

        if worker.has_convictions is False:
            worker.conviction_details = ""
        worker.application_status = status_after_edit(worker.application_status).value

        self._commit()
        return self.repo.get_by_user_id(self.db, user.id)

    def submit_application(self, user: User) -> Worker:
        worker = self.repo.get_by_user_id(self.db, user.id)
        if worker is None:
            raise NotFoundError("No worker application found. Please complete the application first")
        ensure_submittable(worker.application_status)

        if not worker.id_document_url:
            raise ValidationError("Government ID document is required")

        worker.application_status = ApplicationStatus.PENDING.value
        worker.submitted_at = datetime.utcnow()
        worker.rejection_reason = None
        # The mapper guard re-validates required fields during flush
        self._commit()

        worker = self.repo.get_by_user_id(self.db, user.id)
        logger.info(f"✅ Worker application {worker.id} submitted for review")
        self._notify(NotificationKind.WORKER_APPLICATION_RECEIVED, worker)
        return worker

    def upload_document(
        self,
        user: User,
        document_type: str,
        filename: str,
        content_type: str,
        data: bytes,
        name: Optional[str] = None,
    ) -> Worker:
        is_valid, error = validate_document_file(filename, len(data), content_type)
        if not is_valid:
            raise ValidationError(error)

        worker = self.repo.get_by_user_id(self.db, user.id)
        if worker is None:
            worker = self.repo.create_draft(self.db, user)
        elif document_type == "id_document":
            ensure_editable(worker.application_status)

        if document_type == "id_document":
            # Remove the old object before storing its replacement
            if worker.id_document_public_id:
                self.media_store.delete(worker.id_document_public_id)
                try:
                    stored = self.media_store.upload(data, filename, WORKER_DOCUMENTS_FOLDER, content_type)
                except MediaStoreError:
                    # The old object is gone; drop the reference so submission requires a new upload
                    self._clear_id_document(worker)
                    self._commit()
                    raise
            else:
                stored = self.media_store.upload(data, filename, WORKER_DOCUMENTS_FOLDER, content_type)
            worker.id_document_url = stored.url
            worker.id_document_public_id = stored.public_id
            worker.id_document_original_name = filename
            worker.id_document_uploaded_at = datetime.utcnow()
            worker.id_document_verified = False
        else:
            stored = self.media_store.upload(data, filename, WORKER_DOCUMENTS_FOLDER, content_type)
            self.repo.add_certification(
                self.db,
                worker,
                name=name or filename,
                url=stored.url,
                public_id=stored.public_id,
                original_name=filename,
            )

        self._commit()
        logger.info(f"📎 Stored {document_type} for worker {worker.id}")
        return self.repo.get_by_user_id(self.db, user.id)

    # ------------------------------------------------------------------
    # Admin decisions
    # ------------------------------------------------------------------

    def decide(self, worker_id: int, decision: Decision, admin: User, reason: Optional[str] = None) -> Worker:
        worker = self.repo.get_by_id(self.db, worker_id)
        if not worker:
            raise NotFoundError("Worker application not found")
        ensure_decidable(worker.application_status)

        if decision == Decision.APPROVED:
            worker.application_status = ApplicationStatus.APPROVED.value
            worker.is_verified = True
            worker.approved_at = datetime.utcnow()
            worker.approved_by = admin.id
            worker.rejection_reason = None
            worker.user.role = "worker"
        else:
            worker.application_status = ApplicationStatus.REJECTED.value
            worker.rejection_reason = reason

        self._commit()
        worker = self.repo.get_by_id(self.db, worker_id)
        logger.info(f"✅ Worker application {worker.id} {decision.value} by admin {admin.id}")

        if decision == Decision.APPROVED:
            self._notify(NotificationKind.WORKER_APPROVED, worker)
        else:
            self._notify(NotificationKind.WORKER_REJECTED, worker, reason=reason)
        return worker

    # ------------------------------------------------------------------
    # Approved worker profile
    # ------------------------------------------------------------------

    def get_my_profile(self, user: User) -> Worker:
        worker = self.repo.get_by_user_id(self.db, user.id)
        if not worker or worker.application_status != ApplicationStatus.APPROVED.value:
            raise NotFoundError("Worker profile not found or not approved")
        return worker

    def update_my_profile(self, user: User, data: WorkerProfileUpdate) -> Worker:
        worker = self.get_my_profile(user)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(worker, PROFILE_FIELDS[key], value)
        self._commit()
        return self.repo.get_by_user_id(self.db, user.id)

    def get_dashboard(self, user: User) -> dict:
        worker = self.get_my_profile(user)
        month_start = datetime.utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        monthly_bookings, monthly_earnings = self.repo.monthly_stats(self.db, worker.id, month_start)
        recent = BookingRepository.recent_bookings(self.db, limit=10, worker_id=worker.id)
        return {
            "worker": worker,
            "stats": {
                "totalBookings": worker.total_bookings,
                "completedBookings": worker.completed_bookings,
                "cancelledBookings": worker.cancelled_bookings,
                "totalEarnings": worker.total_earnings,
                "responseRate": worker.response_rate,
                "monthlyBookings": monthly_bookings,
                "monthlyEarnings": monthly_earnings,
                "completionRate": worker.completion_rate,
            },
            "recent_bookings": recent,
        }

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def list_available(self, service: Optional[str], page: int, limit: int):
        return self.repo.list_available(self.db, service, page, limit)

    def get_public_profile(self, worker_id: int) -> tuple[Worker, list]:
        worker = self.repo.get_by_id(self.db, worker_id)
        if not worker or worker.application_status != ApplicationStatus.APPROVED.value:
            raise NotFoundError("Worker not found")
        return worker, self.repo.recent_reviews(self.db, worker.id)
