"""Booking status machine.

PENDING -> CONFIRMED -> IN_PROGRESS -> COMPLETED, with CANCELLED reachable
from PENDING or CONFIRMED. COMPLETED and CANCELLED are terminal.

A CONFIRMED booking may also be closed as COMPLETED directly.
"""
from enum import Enum

from instaclean.errors import InvalidTransition, ValidationError


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def __str__(self):
        return self.value


class ContactMethod(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    WHATSAPP = "WHATSAPP"


STATUS_VALUES = tuple(s.value for s in BookingStatus)
CONTACT_METHODS = tuple(c.value for c in ContactMethod)

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED,
    }),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def parse_status(value) -> BookingStatus:
    try:
        return BookingStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid status: {value}") from None


def can_transition(current, target) -> bool:
    return BookingStatus(target) in TRANSITIONS[BookingStatus(current)]


def check_transition(current, target) -> BookingStatus:
    """Return ``target`` as a BookingStatus or raise InvalidTransition."""
    if not can_transition(current, target):
        raise InvalidTransition(str(current), str(target))
    return BookingStatus(target)
