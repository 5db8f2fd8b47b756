"""User service - Profile management and account deactivation"""

import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import ConflictError, ForbiddenError, NotFoundError
from ...models import User
from ..bookings.repository import BookingRepository
from .repository import UserRepository
from .schemas import UserProfileUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_profile(self, user: User) -> dict:
        upcoming = BookingRepository.count_customer_bookings_by_status(self.db, user.id, ("pending", "confirmed"))
        completed = BookingRepository.count_customer_bookings_by_status(self.db, user.id, ("completed",))
        return {"user": user, "upcoming_bookings": upcoming, "completed_bookings": completed}

    def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        updates = {}
        if data.name is not None:
            updates["name"] = data.name
        if data.phone is not None:
            updates["phone"] = data.phone
        if data.bio is not None:
            updates["bio"] = data.bio
        if data.avatar is not None:
            updates["avatar_url"] = data.avatar
        if data.address is not None:
            # Merge so a partial address edit keeps the other parts
            updates["address"] = {**(user.address or {}), **data.address.model_dump(exclude_none=True)}
        if data.location is not None:
            updates["location"] = data.location.coordinates
        if data.preferences is not None:
            updates["preferences"] = {**(user.preferences or {}), **data.preferences.model_dump(exclude_none=True)}

        user = self.repo.update_user(self.db, user, **updates)
        logger.info(f"✅ Profile updated for user {user.id}")
        return user

    def deactivate_account(self, user: User) -> None:
        """Soft delete: free the email for re-registration and disable the account"""
        active = BookingRepository.count_active_for_customer(self.db, user.id)
        if active:
            raise ConflictError("Cannot delete account with active bookings. Please cancel them first")

        original_email = user.email
        user.email = f"deleted_{int(time.time() * 1000)}_{original_email}"
        user.is_active = False
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🗑️ Deactivated account {user.id} ({original_email})")

    def toggle_status(self, user_id: int, admin: User, is_active: Optional[bool] = None) -> User:
        if user_id == admin.id:
            raise ForbiddenError("You cannot change your own account status")

        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise NotFoundError("User not found")

        user.is_active = (not user.is_active) if is_active is None else is_active
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        logger.info(f"🔄 Admin {admin.id} set user {user.id} active={user.is_active}")
        return user
