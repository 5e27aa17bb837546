"""Booking use cases: create, list, read, update (status machine) and delete."""
import logging

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from instaclean import db, utils
from instaclean.errors import Conflict, InvalidTransition, NotFound, ValidationError
from instaclean.models import AccountHolder, Booking, GuestContact, PropertyType, Service, User
from instaclean.policy import Action, Actor, Role, authorize, booking_scope
from instaclean.status import BookingStatus, ContactMethod, check_transition, parse_status

logger = logging.getLogger("instaclean.bookings")

UPDATABLE_FIELDS = ("status", "assignedStaffId", "finalPrice")


def _active_or_invalid(model, object_id, message):
    try:
        object_id = int(object_id)
    except (TypeError, ValueError):
        raise ValidationError(message) from None
    obj = db.session.get(model, object_id)
    if obj is None or not obj.is_active:
        raise ValidationError(message)
    return obj


def _resolve_identity(actor: Actor, payload: dict):
    """Account bookings for signed-in customers; guest contact otherwise.

    Staff and admins taking a booking over the phone pass guest fields and get
    a guest booking; without them the booking is filed under their account.
    """
    has_guest_fields = bool(utils.clean_str(payload, "guestName") or utils.clean_str(payload, "guestPhone"))
    if actor.subject_id is not None and (actor.role == Role.CUSTOMER or not has_guest_fields):
        return AccountHolder(actor.subject_id)

    name = utils.require_str(payload, "guestName", "Please enter your name", min_length=2)
    phone = utils.require_str(payload, "guestPhone", "Please enter your phone number", min_length=7)
    email = utils.optional_email(payload, "guestEmail")
    return GuestContact(name=name, phone=phone, email=email)


def _parse_contact_method(payload: dict) -> str:
    value = utils.clean_str(payload, "contactMethod") or ContactMethod.EMAIL.value
    try:
        return ContactMethod(value.upper()).value
    except ValueError:
        raise ValidationError("Invalid contact method") from None


def create_booking(actor: Actor, payload: dict) -> Booking:
    authorize(actor, Action.CREATE_BOOKING)

    if not utils.clean_str(payload, "serviceId"):
        raise ValidationError("Please select a service")
    if not utils.clean_str(payload, "propertyTypeId"):
        raise ValidationError("Please select a property type")

    fields = dict(
        property_size=utils.clean_str(payload, "propertySize"),
        scheduled_date=utils.parse_date(payload.get("scheduledDate"), "Scheduled date"),
        scheduled_time=utils.require_str(payload, "scheduledTime", "Please select a time"),
        address=utils.require_str(payload, "address", "Please enter your address", min_length=5),
        city=utils.require_str(payload, "city", "Please enter your city", min_length=2),
        state=utils.require_str(payload, "state", "Please enter your state", min_length=2),
        zip_code=utils.clean_str(payload, "zipCode"),
        special_instructions=utils.clean_str(payload, "specialInstructions"),
        contact_method=_parse_contact_method(payload),
    )
    identity = _resolve_identity(actor, payload)

    service = _active_or_invalid(Service, payload.get("serviceId"), "Invalid service selected")
    property_type = _active_or_invalid(PropertyType, payload.get("propertyTypeId"), "Invalid property type selected")

    if payload.get("estimatedPrice") is not None:
        estimated_price = utils.parse_money(payload["estimatedPrice"], "Estimated price")
    else:
        estimated_price = service.base_price

    fields.update(
        service_id=service.id,
        property_type_id=property_type.id,
        estimated_duration=service.duration,
        estimated_price=estimated_price,
        status=BookingStatus.PENDING.value,
    )

    prefix = current_app.config["BOOKING_NUMBER_PREFIX"]
    attempts = current_app.config["BOOKING_NUMBER_ATTEMPTS"]
    for attempt in range(1, attempts + 1):
        booking = Booking(booking_number=utils.generate_booking_number(prefix), **fields)
        booking.identity = identity
        db.session.add(booking)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if "booking_number" not in str(exc.orig):
                raise
            logger.warning("Booking number collision on attempt %d/%d", attempt, attempts)
            continue
        logger.info("Booking %s created (%s, service=%s)", booking.booking_number,
                    "guest" if booking.is_guest else f"user={booking.user_id}", service.id)
        return booking

    raise Conflict("Could not allocate a unique booking number, please try again")


def list_bookings(actor: Actor, status=None, limit=None):
    query = Booking.query
    scope = booking_scope(actor)
    if scope is not None:
        query = query.filter(scope)
    if status:
        query = query.filter(Booking.status == parse_status(status).value)
    query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
    if limit is not None:
        query = query.limit(utils.parse_int(limit, "Limit", minimum=1))
    return query.all()


def find_booking(booking_id) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def get_booking(actor: Actor, booking_id) -> Booking:
    booking = find_booking(booking_id)
    authorize(actor, Action.READ_BOOKING, booking)
    return booking


def _staff_member(staff_id):
    if staff_id is None:
        return None
    staff_id = utils.parse_int(staff_id, "Assigned staff")
    user = db.session.get(User, staff_id)
    if user is None or not user.is_privileged:
        raise ValidationError("Invalid staff member")
    return user.id


def update_booking(actor: Actor, booking_id, payload: dict) -> Booking:
    """Apply a status change and/or staff assignment and final price.

    The status write is conditional on the status read here, so two racing
    updates cannot both transition the same booking.
    """
    booking = find_booking(booking_id)
    if not any(key in payload for key in UPDATABLE_FIELDS):
        raise ValidationError("Nothing to update")

    values = {}
    target = None
    if payload.get("status") is not None:
        target = parse_status(payload["status"])
        action = Action.CANCEL_BOOKING if target == BookingStatus.CANCELLED else Action.CHANGE_BOOKING_STATUS
        authorize(actor, action, booking)

    if "assignedStaffId" in payload:
        authorize(actor, Action.ASSIGN_STAFF, booking)
        values["assigned_staff_id"] = _staff_member(payload["assignedStaffId"])

    if "finalPrice" in payload:
        authorize(actor, Action.SET_FINAL_PRICE, booking)
        final_price = payload["finalPrice"]
        completing = target == BookingStatus.COMPLETED
        if final_price is not None and not completing and booking.status != BookingStatus.COMPLETED.value:
            raise ValidationError("A final price can only be set on a completed booking")
        values["final_price"] = utils.parse_money(final_price, "Final price") if final_price is not None else None

    observed = booking.status
    if target is not None:
        check_transition(observed, target)
        values["status"] = target.value
        if target == BookingStatus.COMPLETED:
            values["completed_at"] = utils.utcnow()

    values["updated_at"] = utils.utcnow()
    statement = update(Booking).where(Booking.id == booking.id)
    if target is not None:
        statement = statement.where(Booking.status == observed)
    result = db.session.execute(statement.values(**values).execution_options(synchronize_session=False))
    if result.rowcount != 1:
        db.session.rollback()
        db.session.expire_all()
        current = db.session.get(Booking, booking.id)
        if current is None or target is None:
            raise NotFound("Booking not found")
        raise InvalidTransition(current.status, target.value)
    db.session.commit()
    db.session.refresh(booking)

    if target is not None:
        logger.info("Booking %s: %s -> %s by %s", booking.booking_number, observed, target.value, actor.role.value)
    return booking


def delete_booking(actor: Actor, booking_id) -> None:
    authorize(actor, Action.DELETE_BOOKING)
    booking = find_booking(booking_id)
    number = booking.booking_number
    db.session.delete(booking)
    db.session.commit()
    logger.info("Booking %s deleted", number)
