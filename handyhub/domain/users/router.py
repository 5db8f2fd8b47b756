"""User router - Self-service profile endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...schemas import ok
from .schemas import UserProfileUpdate, UserResponse
from .service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/me")
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    profile = service.get_profile(current_user)
    return ok(
        data={
            "user": UserResponse.from_model(profile["user"]),
            "stats": {
                "upcomingBookings": profile["upcoming_bookings"],
                "completedBookings": profile["completed_bookings"],
            },
        }
    )


@router.put("/me")
async def update_profile(
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_profile(current_user, data)
    return ok(data=UserResponse.from_model(user), message="Profile updated successfully")


@router.delete("/me")
async def delete_account(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.deactivate_account(current_user)
    return ok(message="Account deleted successfully")
