from typing import Any, Dict, FrozenSet

from ..ports.appointments_repo import AppointmentStatus
from ...exceptions import ErrorKind, ValidationError

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


def parse_status(value: Any) -> AppointmentStatus:
    if isinstance(value, AppointmentStatus):
        return value
    try:
        return AppointmentStatus(value)
    except ValueError:
        valid = [s.value for s in AppointmentStatus]
        raise ValidationError(f"Invalid status value. Must be one of: {valid}", ErrorKind.INVALID_STATUS, "status")


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def check_transition(current: Any, target: Any, strict: bool = True) -> bool:
    """Validate a status change.

    Returns False when ``target`` equals ``current`` (nothing to write) and
    True when the change should be applied. With ``strict`` off every change
    between known statuses is accepted.
    """
    current_status = parse_status(current)
    target_status = parse_status(target)
    if current_status == target_status:
        return False
    if strict and not can_transition(current_status, target_status):
        raise ValidationError(
            f"Cannot change appointment status from {current_status.value} to {target_status.value}",
            ErrorKind.INVALID_TRANSITION,
            "status",
        )
    return True
