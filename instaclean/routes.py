import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from instaclean import app, db
from instaclean import bookings, catalog, reports, staff
from instaclean.auth import current_actor, remember_guest_booking
from instaclean.errors import AppError, InternalError
from instaclean.models import Booking
from instaclean.notifications import notify_booking_created
from instaclean.policy import Action, authorize
from instaclean.utils import parse_bool, utcnow

logger = logging.getLogger("instaclean.routes")


def _payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _include_inactive() -> bool:
    value = request.args.get("all")
    return bool(value) and parse_bool(value, "all")


# ========== CATALOG ==========

@app.route("/api/services")
def list_services():
    services = catalog.list_services(current_actor(), include_inactive=_include_inactive())
    return jsonify([s.to_dict() for s in services])


@app.route("/api/services/<int:service_id>")
def get_service(service_id):
    return jsonify(catalog.get_service(service_id, current_actor()).to_dict())


@app.route("/api/services", methods=["POST"])
def create_service():
    service = catalog.create_service(current_actor(), _payload())
    return jsonify(service.to_dict()), 201


@app.route("/api/services/<int:service_id>", methods=["PATCH"])
def update_service(service_id):
    return jsonify(catalog.update_service(current_actor(), service_id, _payload()).to_dict())


@app.route("/api/services/<int:service_id>", methods=["DELETE"])
def delete_service(service_id):
    action = catalog.delete_service(current_actor(), service_id)
    if action == catalog.DEACTIVATED:
        message = "Service has bookings, so it was deactivated instead of deleted"
    else:
        message = "Service deleted"
    return jsonify({"success": True, "action": action, "message": message})


@app.route("/api/property-types")
def list_property_types():
    types = catalog.list_property_types(current_actor(), include_inactive=_include_inactive())
    return jsonify([t.to_dict() for t in types])


@app.route("/api/property-types/<int:type_id>")
def get_property_type(type_id):
    return jsonify(catalog.get_property_type(type_id, current_actor()).to_dict())


@app.route("/api/property-types", methods=["POST"])
def create_property_type():
    property_type = catalog.create_property_type(current_actor(), _payload())
    return jsonify(property_type.to_dict()), 201


@app.route("/api/property-types/<int:type_id>", methods=["PATCH"])
def update_property_type(type_id):
    return jsonify(catalog.update_property_type(current_actor(), type_id, _payload()).to_dict())


@app.route("/api/property-types/<int:type_id>", methods=["DELETE"])
def delete_property_type(type_id):
    action = catalog.delete_property_type(current_actor(), type_id)
    if action == catalog.DEACTIVATED:
        message = "Property type has bookings, so it was deactivated instead of deleted"
    else:
        message = "Property type deleted"
    return jsonify({"success": True, "action": action, "message": message})


# ========== BOOKINGS ==========

@app.route("/api/bookings", methods=["POST"])
def create_booking():
    actor = current_actor()
    booking = bookings.create_booking(actor, _payload())
    if booking.is_guest:
        remember_guest_booking(booking.id)
    notify_booking_created(booking)
    return jsonify(booking.to_dict()), 201


@app.route("/api/bookings")
def list_bookings():
    found = bookings.list_bookings(
        current_actor(),
        status=request.args.get("status"),
        limit=request.args.get("limit"),
    )
    return jsonify([b.to_dict() for b in found])


@app.route("/api/bookings/<int:booking_id>")
def get_booking(booking_id):
    return jsonify(bookings.get_booking(current_actor(), booking_id).to_dict())


@app.route("/api/bookings/<int:booking_id>", methods=["PATCH"])
def update_booking(booking_id):
    booking = bookings.update_booking(current_actor(), booking_id, _payload())
    return jsonify(booking.to_dict())


@app.route("/api/bookings/<int:booking_id>", methods=["DELETE"])
def delete_booking(booking_id):
    bookings.delete_booking(current_actor(), booking_id)
    return jsonify({"message": "Booking deleted successfully"})


# ========== STAFF ==========

@app.route("/api/staff")
def list_staff():
    return jsonify([u.to_dict() for u in staff.list_staff(current_actor())])


@app.route("/api/staff", methods=["POST"])
def create_staff():
    return jsonify(staff.create_staff(current_actor(), _payload()).to_dict()), 201


@app.route("/api/staff/<int:staff_id>", methods=["PATCH"])
def update_staff(staff_id):
    return jsonify(staff.update_staff(current_actor(), staff_id, _payload()).to_dict())


@app.route("/api/staff/<int:staff_id>", methods=["DELETE"])
def delete_staff(staff_id):
    staff.delete_staff(current_actor(), staff_id)
    return jsonify({"success": True})


# ========== REPORTS ==========

@app.route("/api/dashboard")
def dashboard():
    authorize(current_actor(), Action.VIEW_REPORTS)
    return jsonify(reports.dashboard_stats(Booking.query.all(), utcnow()))


@app.route("/api/reports")
def report():
    authorize(current_actor(), Action.VIEW_REPORTS)
    range_name = request.args.get("range", "month")
    return jsonify(reports.build_report(Booking.query.all(), range_name, utcnow()))


# ========== ERRORS ==========

@app.errorhandler(AppError)
def app_error(err):
    return jsonify(err.to_dict()), err.status_code


@app.errorhandler(404)
def not_found(err):
    return jsonify({"error": "Not Found", "type": "NotFound"}), 404


@app.errorhandler(405)
def method_not_allowed(err):
    return jsonify({"error": "Method Not Allowed", "type": "MethodNotAllowed"}), 405


@app.errorhandler(Exception)
def unexpected_error(err):
    if isinstance(err, HTTPException):
        return err
    db.session.rollback()
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify(InternalError().to_dict()), 500
