"""Staff and admin accounts managed from the back-office."""
import logging

from sqlalchemy.exc import IntegrityError

from instaclean import bcrypt, db, utils
from instaclean.errors import Conflict, NotFound, ValidationError
from instaclean.models import Booking, PRIVILEGED_ROLES, User
from instaclean.policy import Action, Actor, authorize

logger = logging.getLogger("instaclean.staff")


def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode()


def email_taken(email: str, exclude_id=None) -> bool:
    query = User.query.filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _parse_role(payload: dict, default=None):
    role = (utils.clean_str(payload, "role") or default or "").upper()
    if role not in PRIVILEGED_ROLES:
        raise ValidationError("Role must be STAFF or ADMIN")
    return role


def _commit_account(email):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email already exists") from None


def list_staff(actor: Actor):
    authorize(actor, Action.MANAGE_STAFF)
    return (User.query.filter(User.role.in_(PRIVILEGED_ROLES))
            .order_by(User.created_at.desc(), User.id.desc()).all())


def get_staff_member(staff_id) -> User:
    user = db.session.get(User, staff_id)
    if user is None or not user.is_privileged:
        raise NotFound("Staff member not found")
    return user


def create_staff(actor: Actor, payload: dict) -> User:
    authorize(actor, Action.MANAGE_STAFF)
    name = utils.clean_str(payload, "name")
    email = utils.optional_email(payload, "email")
    password = payload.get("password") or None
    if not name or not email or not password:
        raise ValidationError("Name, email, and password are required")
    if email_taken(email):
        raise Conflict("Email already exists")

    user = User(
        name=name,
        email=email,
        phone=utils.clean_str(payload, "phone"),
        role=_parse_role(payload, default="STAFF"),
        password=hash_password(password),
    )
    db.session.add(user)
    _commit_account(email)
    logger.info("Staff account %s created (%s)", user.id, user.role)
    return user


def update_staff(actor: Actor, staff_id, payload: dict) -> User:
    authorize(actor, Action.MANAGE_STAFF)
    user = get_staff_member(staff_id)

    if "email" in payload:
        email = utils.optional_email(payload, "email")
        if not email:
            raise ValidationError("Email is required")
        if email != user.email and email_taken(email, exclude_id=user.id):
            raise Conflict("Email already exists")
        user.email = email
    if "name" in payload:
        user.name = utils.require_str(payload, "name", "Name is required")
    if "phone" in payload:
        user.phone = utils.clean_str(payload, "phone")
    if "role" in payload:
        user.role = _parse_role(payload)
    if payload.get("password"):
        user.password = hash_password(payload["password"])

    _commit_account(user.email)
    return user


def delete_staff(actor: Actor, staff_id) -> None:
    authorize(actor, Action.MANAGE_STAFF)
    user = get_staff_member(staff_id)
    if user.id == actor.subject_id:
        raise ValidationError("You cannot delete your own account")
    owned = Booking.query.filter_by(user_id=user.id).count()
    if owned:
        raise Conflict(f"Staff member has {owned} bookings on their account and cannot be deleted")

    cleared = Booking.query.filter_by(assigned_staff_id=user.id).update(
        {Booking.assigned_staff_id: None}, synchronize_session=False)
    db.session.delete(user)
    db.session.commit()
    logger.info("Staff account %s deleted, %d bookings unassigned", staff_id, cleared)
