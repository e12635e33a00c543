import pytest

from healthtrack.application.ports.appointments_repo import AppointmentStatus
from healthtrack.application.services.status_transitions import (
    TERMINAL_STATUSES,
    can_transition,
    check_transition,
    parse_status,
)
from healthtrack.exceptions import ErrorKind, ValidationError

S = AppointmentStatus


@pytest.mark.parametrize("current,target", [
    (S.SCHEDULED, S.CONFIRMED),
    (S.SCHEDULED, S.CANCELLED),
    (S.CONFIRMED, S.COMPLETED),
    (S.CONFIRMED, S.CANCELLED),
])
def test_legal_edges(current, target):
    assert check_transition(current, target) is True


@pytest.mark.parametrize("current,target", [
    (S.SCHEDULED, S.COMPLETED),
    (S.CONFIRMED, S.SCHEDULED),
    (S.COMPLETED, S.CANCELLED),
    (S.CANCELLED, S.SCHEDULED),
    (S.CANCELLED, S.CONFIRMED),
])
def test_illegal_edges_rejected_in_strict_mode(current, target):
    with pytest.raises(ValidationError) as exc:
        check_transition(current.value, target.value)
    assert exc.value.kind == ErrorKind.INVALID_TRANSITION


def test_permissive_mode_allows_any_known_status():
    assert check_transition("completed", "scheduled", strict=False) is True


def test_same_status_is_a_noop():
    assert check_transition("completed", "completed") is False


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELLED}
    for terminal in TERMINAL_STATUSES:
        assert not any(can_transition(terminal, other) for other in S if other != terminal)


@pytest.mark.parametrize("value", ["done", "", None, "SCHEDULED"])
def test_unknown_status_value(value):
    with pytest.raises(ValidationError) as exc:
        parse_status(value)
    assert exc.value.kind == ErrorKind.INVALID_STATUS
