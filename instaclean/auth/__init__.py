from flask import session

from instaclean import db
from instaclean.models import User
from instaclean.policy import Actor, Role

GUEST_BOOKINGS_KEY = "guest_bookings"


def current_user():
    user_id = session.get("user_id")
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        # account removed while signed in
        session.pop("user_id", None)
    return user


def current_actor() -> Actor:
    """Resolve (role, subject id) for the request from the cookie session."""
    guest_ids = frozenset(session.get(GUEST_BOOKINGS_KEY, []))
    user = current_user()
    if user is None:
        return Actor.guest(guest_ids)
    return Actor(Role(user.role), user.id, guest_ids)


def remember_guest_booking(booking_id: int) -> None:
    ids = list(session.get(GUEST_BOOKINGS_KEY, []))
    if booking_id not in ids:
        ids.append(booking_id)
    session[GUEST_BOOKINGS_KEY] = ids
