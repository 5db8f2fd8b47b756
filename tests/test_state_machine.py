import pytest

from handyhub.domain.bookings.state_machine import (
    TRANSITIONS,
    ActorRole,
    BookingStatus,
    allowed_targets,
    resolve_actor_role,
    transition,
)
from handyhub.exceptions import InvalidTransitionError


@pytest.mark.parametrize(
    "role,current,requested",
    [
        (ActorRole.WORKER, "pending", "confirmed"),
        (ActorRole.WORKER, "pending", "cancelled"),
        (ActorRole.WORKER, "confirmed", "in-progress"),
        (ActorRole.WORKER, "in-progress", "completed"),
        (ActorRole.CUSTOMER, "pending", "cancelled"),
        (ActorRole.CUSTOMER, "confirmed", "cancelled"),
        (ActorRole.ADMIN, "confirmed", "completed"),
        (ActorRole.ADMIN, "in-progress", "cancelled"),
    ],
)
def test_allowed_transitions(role, current, requested):
    assert transition(current, role, requested) == BookingStatus(requested)


@pytest.mark.parametrize(
    "role,current,requested",
    [
        (ActorRole.CUSTOMER, "pending", "confirmed"),
        (ActorRole.CUSTOMER, "in-progress", "cancelled"),
        (ActorRole.WORKER, "in-progress", "cancelled"),
        (ActorRole.WORKER, "pending", "completed"),
        (ActorRole.ADMIN, "pending", "in-progress"),
        (ActorRole.ADMIN, "completed", "cancelled"),
        (ActorRole.WORKER, "cancelled", "pending"),
    ],
)
def test_rejected_transitions(role, current, requested):
    with pytest.raises(InvalidTransitionError) as exc_info:
        transition(current, role, requested)
    assert exc_info.value.message == f"Cannot change status from {current} to {requested}"


def test_same_transition_twice_fails():
    new_status = transition("pending", ActorRole.WORKER, "confirmed")
    with pytest.raises(InvalidTransitionError):
        transition(new_status.value, ActorRole.WORKER, "confirmed")


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidTransitionError):
        transition("pending", ActorRole.ADMIN, "archived")


def test_terminal_states_have_no_exits():
    for role in ActorRole:
        assert allowed_targets(role, BookingStatus.COMPLETED) == frozenset()
        assert allowed_targets(role, BookingStatus.CANCELLED) == frozenset()
    assert set(TRANSITIONS) == set(ActorRole)


def test_resolve_actor_role():
    assert resolve_actor_role(1, "user", worker_user_id=2, customer_user_id=1) == ActorRole.CUSTOMER
    assert resolve_actor_role(2, "worker", worker_user_id=2, customer_user_id=1) == ActorRole.WORKER
    assert resolve_actor_role(9, "admin", worker_user_id=2, customer_user_id=1) == ActorRole.ADMIN
    # Admin wins even when the admin is also the assigned worker
    assert resolve_actor_role(2, "admin", worker_user_id=2, customer_user_id=None) == ActorRole.ADMIN
    assert resolve_actor_role(5, "user", worker_user_id=2, customer_user_id=None) is None
