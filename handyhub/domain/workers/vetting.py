"""
Worker application lifecycle

incomplete -> pending -> approved | rejected. A rejected application becomes
editable again and drops back to incomplete on the next save; pending and
approved applications are frozen for the applicant.
"""

from enum import Enum

from ...exceptions import ConflictError, InvalidStateError


class ApplicationStatus(str, Enum):
    INCOMPLETE = "incomplete"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


EDITABLE_STATUSES = frozenset({ApplicationStatus.INCOMPLETE, ApplicationStatus.REJECTED})


def ensure_editable(status: str) -> None:
    if ApplicationStatus(status) not in EDITABLE_STATUSES:
        raise InvalidStateError(f"Application cannot be modified while it is {status}")


def ensure_submittable(status: str) -> None:
    if ApplicationStatus(status) in (ApplicationStatus.PENDING, ApplicationStatus.APPROVED):
        raise ConflictError(f"Worker application already {status}")


def ensure_decidable(status: str) -> None:
    if ApplicationStatus(status) != ApplicationStatus.PENDING:
        raise InvalidStateError(f"Application is already {status}")


def status_after_edit(status: str) -> ApplicationStatus:
    """Editing a rejected application reopens it as a draft"""
    return ApplicationStatus.INCOMPLETE if ApplicationStatus(status) == ApplicationStatus.REJECTED else ApplicationStatus(status)
