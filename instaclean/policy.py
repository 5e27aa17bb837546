"""Role based access policy shared by every endpoint."""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from instaclean.errors import Forbidden, Unauthorized
from instaclean.models import Booking


class Role(str, Enum):
    GUEST = "GUEST"
    CUSTOMER = "CUSTOMER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class Action(str, Enum):
    CREATE_BOOKING = "booking.create"
    LIST_BOOKINGS = "booking.list"
    READ_BOOKING = "booking.read"
    CANCEL_BOOKING = "booking.cancel"
    CHANGE_BOOKING_STATUS = "booking.status"
    ASSIGN_STAFF = "booking.assign_staff"
    SET_FINAL_PRICE = "booking.final_price"
    DELETE_BOOKING = "booking.delete"
    MANAGE_CATALOG = "catalog.manage"
    MANAGE_STAFF = "staff.manage"
    VIEW_REPORTS = "reports.view"


# Actions a role may take on any booking
CAPABILITIES = {
    Role.GUEST: frozenset({Action.CREATE_BOOKING}),
    Role.CUSTOMER: frozenset({Action.CREATE_BOOKING, Action.LIST_BOOKINGS}),
    Role.STAFF: frozenset({
        Action.CREATE_BOOKING,
        Action.LIST_BOOKINGS,
        Action.READ_BOOKING,
        Action.CANCEL_BOOKING,
        Action.CHANGE_BOOKING_STATUS,
        Action.ASSIGN_STAFF,
        Action.SET_FINAL_PRICE,
    }),
    Role.ADMIN: frozenset(Action),
}

# Actions a role may take only on bookings it owns
OWNER_CAPABILITIES = {
    Role.GUEST: frozenset({Action.READ_BOOKING, Action.CANCEL_BOOKING}),
    Role.CUSTOMER: frozenset({Action.READ_BOOKING, Action.CANCEL_BOOKING}),
    Role.STAFF: frozenset(),
    Role.ADMIN: frozenset(),
}


@dataclass(frozen=True)
class Actor:
    role: Role
    subject_id: Optional[int] = None
    guest_booking_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def guest(cls, guest_booking_ids=()):
        return cls(Role.GUEST, None, frozenset(guest_booking_ids))

    @property
    def is_anonymous(self) -> bool:
        return self.subject_id is None

    def owns(self, booking) -> bool:
        if booking is None:
            return False
        if self.subject_id is not None and booking.user_id == self.subject_id:
            return True
        return booking.id in self.guest_booking_ids


def can(actor: Actor, action: Action, booking=None) -> bool:
    if action in CAPABILITIES[actor.role]:
        return True
    return action in OWNER_CAPABILITIES[actor.role] and actor.owns(booking)


def authorize(actor: Actor, action: Action, booking=None) -> None:
    if can(actor, action, booking):
        return
    if actor.is_anonymous and not actor.owns(booking):
        raise Unauthorized()
    raise Forbidden()


def booking_scope(actor: Actor):
    """Listing filter for ``actor``; None means every booking."""
    authorize(actor, Action.LIST_BOOKINGS)
    if actor.role == Role.ADMIN:
        return None
    if actor.role == Role.STAFF:
        return Booking.assigned_staff_id == actor.subject_id
    return Booking.user_id == actor.subject_id
