"""
Booking status lifecycle

pending -> confirmed -> in-progress -> completed, with cancellation from
pending/confirmed (and from in-progress for admins). Which transitions are
allowed depends on who is asking.
"""

from enum import Enum
from typing import Optional

from ...exceptions import InvalidTransitionError


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActorRole(str, Enum):
    WORKER = "worker"
    CUSTOMER = "customer"
    ADMIN = "admin"


S = BookingStatus

TRANSITIONS: dict[ActorRole, dict[BookingStatus, frozenset[BookingStatus]]] = {
    ActorRole.WORKER: {
        S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
        S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED}),
        S.IN_PROGRESS: frozenset({S.COMPLETED}),
    },
    ActorRole.CUSTOMER: {
        S.PENDING: frozenset({S.CANCELLED}),
        S.CONFIRMED: frozenset({S.CANCELLED}),
    },
    ActorRole.ADMIN: {
        S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
        S.CONFIRMED: frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED}),
        S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED}),
    },
}


def allowed_targets(role: ActorRole, current: BookingStatus) -> frozenset[BookingStatus]:
    return TRANSITIONS[role].get(current, frozenset())


def transition(current: str, role: ActorRole, requested: str) -> BookingStatus:
    """
    Validate a status change for an actor and return the new status.

    Raises:
        InvalidTransitionError: If the table has no such edge for the role
    """
    try:
        current_status = BookingStatus(current)
        requested_status = BookingStatus(requested)
    except ValueError as e:
        raise InvalidTransitionError(current, requested) from e

    if requested_status not in allowed_targets(role, current_status):
        raise InvalidTransitionError(current_status.value, requested_status.value)
    return requested_status


def resolve_actor_role(
    user_id: int,
    user_role: str,
    worker_user_id: Optional[int],
    customer_user_id: Optional[int],
) -> Optional[ActorRole]:
    """Role an actor plays on a booking; admin wins over any other relation"""
    if user_role == "admin":
        return ActorRole.ADMIN
    if worker_user_id is not None and user_id == worker_user_id:
        return ActorRole.WORKER
    if customer_user_id is not None and user_id == customer_user_id:
        return ActorRole.CUSTOMER
    return None
