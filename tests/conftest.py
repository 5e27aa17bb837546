"""
Test configuration: point the app at an in-memory SQLite database before it
is imported, and rebuild the schema and seed data for every test.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_LOG_ROUNDS"] = "4"
os.environ["MAIL_SUPPRESS_SEND"] = "True"
os.environ["SEED_DATA"] = "False"
os.environ["ADMIN_EMAIL"] = "admin@instacleaning.com"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["STAFF_PASSWORD"] = "staff123"
for key in ("MAIL_DEFAULT_SENDER", "MAIL_USERNAME"):
    os.environ.pop(key, None)

import pytest  # noqa: E402

from instaclean import app as flask_app, db, seed_initial_data  # noqa: E402
from instaclean.models import User  # noqa: E402

ADMIN = ("admin@instacleaning.com", "admin123")
STAFF = ("maria@instacleaning.com", "staff123")
OTHER_STAFF = ("james@instacleaning.com", "staff123")


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True, MAIL_DEFAULT_SENDER=None)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        seed_initial_data()
        yield flask_app
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    login(c, *ADMIN)
    return c


@pytest.fixture
def staff_client(app):
    c = app.test_client()
    login(c, *STAFF)
    return c


@pytest.fixture
def make_customer(app):
    """Register a customer account and return a signed-in client for it."""
    def _make(email="kofi@example.com", name="Kofi Mensah", password="secret123"):
        c = app.test_client()
        response = c.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.get_json()
        login(c, email, password)
        return c
    return _make


def user_id(email):
    return User.query.filter_by(email=email).one().id


def booking_payload(**overrides):
    data = {
        "serviceId": 1,
        "propertyTypeId": 1,
        "propertySize": "3 bedrooms",
        "scheduledDate": "2026-11-02",
        "scheduledTime": "09:00 AM",
        "address": "12 Ring Road East",
        "city": "Accra",
        "state": "Greater Accra",
        "contactMethod": "SMS",
        "guestName": "Jane",
        "guestPhone": "0551234567",
    }
    data.update(overrides)
    return data
