import pytest

from instaclean.errors import InvalidTransition, ValidationError
from instaclean.status import (
    BookingStatus,
    can_transition,
    check_transition,
    parse_status,
)


@pytest.mark.parametrize("current,target", [
    ("PENDING", "CONFIRMED"),
    ("PENDING", "CANCELLED"),
    ("CONFIRMED", "IN_PROGRESS"),
    ("CONFIRMED", "COMPLETED"),
    ("CONFIRMED", "CANCELLED"),
    ("IN_PROGRESS", "COMPLETED"),
])
def test_allowed_transitions(current, target):
    assert check_transition(current, target) == BookingStatus(target)


@pytest.mark.parametrize("current,target", [
    ("PENDING", "IN_PROGRESS"),
    ("PENDING", "COMPLETED"),
    ("PENDING", "PENDING"),
    ("IN_PROGRESS", "CANCELLED"),
    ("IN_PROGRESS", "PENDING"),
])
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidTransition) as info:
        check_transition(current, target)
    assert info.value.status_code == 400
    assert current in info.value.message


def test_terminal_states_have_no_way_out():
    for terminal in (BookingStatus.COMPLETED, "CANCELLED"):
        for target in BookingStatus:
            assert not can_transition(terminal, target)


def test_parse_status_is_case_insensitive():
    assert parse_status(" confirmed ") is BookingStatus.CONFIRMED
    with pytest.raises(ValidationError):
        parse_status("LOST")


def test_status_compares_equal_to_stored_string():
    assert BookingStatus.IN_PROGRESS == "IN_PROGRESS"
