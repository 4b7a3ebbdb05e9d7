"""Credit application state machine"""

from chainflow_credit.domain.exceptions import InvalidStateError
from chainflow_credit.domain.models import ApplicationStatus

ALLOWED_TRANSITIONS = {
    ApplicationStatus.PENDING: {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED},
    ApplicationStatus.APPROVED: {ApplicationStatus.ACTIVE},
    ApplicationStatus.ACTIVE: {ApplicationStatus.COMPLETED, ApplicationStatus.DEFAULTED},
}

TERMINAL_STATUSES = frozenset(
    {ApplicationStatus.REJECTED, ApplicationStatus.COMPLETED, ApplicationStatus.DEFAULTED}
)


def check_transition(current: ApplicationStatus | str, target: ApplicationStatus | str) -> bool:
    """
    Validate a lifecycle transition.

    Returns True when the transition must be applied and False when the
    application is already in the target state (duplicate event delivery).

    Raises:
        InvalidStateError: transition is not part of the state machine
    """
    current = ApplicationStatus(current)
    target = ApplicationStatus(target)

    if current == target:
        return False

    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStateError(f"Cannot move application from {current.value} to {target.value}")

    return True


def is_terminal(status: ApplicationStatus | str) -> bool:
    return ApplicationStatus(status) in TERMINAL_STATUSES
