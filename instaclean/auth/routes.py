import logging

from flask import jsonify, request, session

from instaclean import app, bcrypt, db, utils
from instaclean.auth import current_actor, current_user
from instaclean.errors import Conflict, Unauthorized, ValidationError
from instaclean.models import User
from instaclean.staff import email_taken, hash_password

logger = logging.getLogger("instaclean.auth")


@app.route("/api/auth/register", methods=["POST"])
def register():
    payload = request.get_json(silent=True) or {}
    name = utils.require_str(payload, "name", "Name must be at least 2 characters", min_length=2)
    email = utils.optional_email(payload, "email")
    if not email:
        raise ValidationError("Invalid email address")
    password = payload.get("password") or ""
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if email_taken(email):
        raise Conflict("An account with this email already exists")

    user = User(
        name=name,
        email=email,
        phone=utils.clean_str(payload, "phone"),
        password=hash_password(password),
        role="CUSTOMER",
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Customer account %s registered", user.id)
    return jsonify({"message": "Account created successfully", "userId": user.id}), 201


@app.route("/api/auth/login", methods=["POST"])
def login():
    payload = request.get_json(silent=True) or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    user = User.query.filter_by(email=email).first()

    if not (user and bcrypt.check_password_hash(user.password, password)):
        raise Unauthorized("Incorrect email or password")

    session["user_id"] = user.id
    return jsonify(user.to_dict())


@app.route("/api/auth/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"success": True})


@app.route("/api/auth/me")
def me():
    actor = current_actor()
    user = current_user()
    return jsonify({
        "role": actor.role.value,
        "user": user.to_dict() if user else None,
        "guestBookings": sorted(actor.guest_booking_ids),
    })
