"""Services and property types offered for booking."""
import logging

from sqlalchemy.exc import IntegrityError

from instaclean import db, utils
from instaclean.errors import Conflict, NotFound, ValidationError
from instaclean.models import Booking, PropertyType, Service
from instaclean.policy import Action, Actor, authorize, can

logger = logging.getLogger("instaclean.catalog")

DELETED = "deleted"
DEACTIVATED = "deactivated"


def list_services(actor: Actor = None, include_inactive: bool = False):
    query = Service.query
    if not (include_inactive and actor is not None and can(actor, Action.MANAGE_CATALOG)):
        query = query.filter_by(is_active=True)
    return query.order_by(Service.name).all()


def list_property_types(actor: Actor = None, include_inactive: bool = False):
    query = PropertyType.query
    if not (include_inactive and actor is not None and can(actor, Action.MANAGE_CATALOG)):
        query = query.filter_by(is_active=True)
    return query.order_by(PropertyType.name).all()


def _get_visible(model, object_id, actor, label):
    obj = db.session.get(model, object_id)
    # inactive records are only visible to catalog managers
    if obj is None or (not obj.is_active and not (actor is not None and can(actor, Action.MANAGE_CATALOG))):
        raise NotFound(f"{label} not found")
    return obj


def get_service(service_id, actor: Actor = None) -> Service:
    return _get_visible(Service, service_id, actor, "Service")


def get_property_type(type_id, actor: Actor = None) -> PropertyType:
    return _get_visible(PropertyType, type_id, actor, "Property type")


# ----- Services -----

def _service_fields(payload: dict, partial: bool) -> dict:
    fields = {}
    if not partial or "name" in payload:
        fields["name"] = utils.require_str(payload, "name", "Service name is required", min_length=2)
    if not partial or "description" in payload:
        fields["description"] = utils.require_str(
            payload, "description", "Description must be at least 10 characters", min_length=10)
    if not partial or "basePrice" in payload:
        fields["base_price"] = utils.parse_money(payload.get("basePrice"), "Price")
    if not partial or "duration" in payload:
        fields["duration"] = utils.parse_int(payload.get("duration"), "Duration", minimum=15)
    if "priceUnit" in payload or not partial:
        fields["price_unit"] = utils.clean_str(payload, "priceUnit") or "per hour"
    if "image" in payload:
        fields["image"] = utils.clean_str(payload, "image")
    if "isActive" in payload:
        fields["is_active"] = utils.parse_bool(payload["isActive"], "isActive")
    return fields


def create_service(actor: Actor, payload: dict) -> Service:
    authorize(actor, Action.MANAGE_CATALOG)
    service = Service(**_service_fields(payload, partial=False))
    db.session.add(service)
    db.session.commit()
    logger.info("Service %s created: %s", service.id, service.name)
    return service


def update_service(actor: Actor, service_id, payload: dict) -> Service:
    authorize(actor, Action.MANAGE_CATALOG)
    service = get_service(service_id, actor)
    for key, value in _service_fields(payload, partial=True).items():
        setattr(service, key, value)
    db.session.commit()
    return service


def _delete_or_deactivate(obj, booking_count: int, label: str) -> str:
    if booking_count > 0:
        obj.is_active = False
        db.session.commit()
        logger.info("%s %s has %d bookings, deactivated instead of deleted", label, obj.id, booking_count)
        return DEACTIVATED
    object_id = obj.id
    db.session.delete(obj)
    db.session.commit()
    logger.info("%s %s deleted", label, object_id)
    return DELETED


def delete_service(actor: Actor, service_id) -> str:
    authorize(actor, Action.MANAGE_CATALOG)
    service = get_service(service_id, actor)
    count = Booking.query.filter_by(service_id=service.id).count()
    return _delete_or_deactivate(service, count, "Service")


# ----- Property types -----

def _property_type_fields(payload: dict, partial: bool) -> dict:
    fields = {}
    if not partial or "name" in payload:
        fields["name"] = utils.require_str(payload, "name", "Property type name is required", min_length=2)
    for key in ("description", "icon"):
        if key in payload:
            fields[key] = utils.clean_str(payload, key)
    if "isActive" in payload:
        fields["is_active"] = utils.parse_bool(payload["isActive"], "isActive")
    return fields


def _commit_unique_name(name):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(f"A property type named '{name}' already exists") from None


def create_property_type(actor: Actor, payload: dict) -> PropertyType:
    authorize(actor, Action.MANAGE_CATALOG)
    fields = _property_type_fields(payload, partial=False)
    property_type = PropertyType(**fields)
    db.session.add(property_type)
    _commit_unique_name(fields["name"])
    return property_type


def update_property_type(actor: Actor, type_id, payload: dict) -> PropertyType:
    authorize(actor, Action.MANAGE_CATALOG)
    property_type = get_property_type(type_id, actor)
    fields = _property_type_fields(payload, partial=True)
    if not fields:
        raise ValidationError("Nothing to update")
    for key, value in fields.items():
        setattr(property_type, key, value)
    _commit_unique_name(property_type.name)
    return property_type


def delete_property_type(actor: Actor, type_id) -> str:
    authorize(actor, Action.MANAGE_CATALOG)
    property_type = get_property_type(type_id, actor)
    count = Booking.query.filter_by(property_type_id=property_type.id).count()
    return _delete_or_deactivate(property_type, count, "Property type")
