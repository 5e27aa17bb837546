from instaclean import db
from instaclean.models import Booking, User

from conftest import ADMIN, STAFF, booking_payload, login, user_id


def test_register_login_and_me(client):
    response = client.post("/api/auth/register", json={
        "name": "Ama Owusu", "email": "Ama@Example.com", "password": "secret123", "phone": "0240000000",
    })
    assert response.status_code == 201

    assert client.get("/api/auth/me").get_json()["role"] == "GUEST"
    login(client, "ama@example.com", "secret123")
    me = client.get("/api/auth/me").get_json()
    assert me["role"] == "CUSTOMER"
    assert me["user"]["email"] == "ama@example.com"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").get_json()["user"] is None


def test_register_rejects_duplicates_and_bad_input(client):
    assert client.post("/api/auth/register", json={
        "name": "Admin Again", "email": ADMIN[0], "password": "secret123"}).status_code == 409
    assert client.post("/api/auth/register", json={
        "name": "Ama", "email": "ama@example.com", "password": "123"}).status_code == 400
    assert client.post("/api/auth/register", json={
        "name": "Ama", "email": "nope", "password": "secret123"}).status_code == 400


def test_wrong_password_is_unauthorized(client):
    response = client.post("/api/auth/login", json={"email": ADMIN[0], "password": "wrong"})
    assert response.status_code == 401
    assert response.get_json()["type"] == "Unauthorized"


def test_staff_list_is_admin_only(admin_client, staff_client, client):
    emails = [u["email"] for u in admin_client.get("/api/staff").get_json()]
    assert set(emails) == {ADMIN[0], STAFF[0], "james@instacleaning.com"}

    assert staff_client.get("/api/staff").status_code == 403
    assert client.get("/api/staff").status_code == 401


def test_create_staff_member(admin_client, app):
    response = admin_client.post("/api/staff", json={
        "name": "Efua Asante", "email": "efua@instacleaning.com", "password": "cleanup1"})
    assert response.status_code == 201
    assert response.get_json()["role"] == "STAFF"
    assert "password" not in response.get_json()

    new_staff = app.test_client()
    login(new_staff, "efua@instacleaning.com", "cleanup1")
    assert new_staff.get("/api/bookings").status_code == 200


def test_create_staff_validation(admin_client):
    assert admin_client.post("/api/staff", json={"name": "No Email", "password": "x"}).status_code == 400
    assert admin_client.post("/api/staff", json={
        "name": "Dup", "email": STAFF[0], "password": "secret"}).status_code == 409
    assert admin_client.post("/api/staff", json={
        "name": "Boss", "email": "boss@x.com", "password": "secret", "role": "CUSTOMER"}).status_code == 400


def test_update_staff_member(admin_client, app):
    staff_id = user_id(STAFF[0])

    response = admin_client.patch(f"/api/staff/{staff_id}", json={"phone": "(555) 999-9999", "password": "newpass1"})
    assert response.status_code == 200
    assert response.get_json()["phone"] == "(555) 999-9999"
    login(app.test_client(), STAFF[0], "newpass1")

    taken = admin_client.patch(f"/api/staff/{staff_id}", json={"email": "james@instacleaning.com"})
    assert taken.status_code == 409


def test_customers_are_not_staff(admin_client, make_customer):
    make_customer()
    assert admin_client.patch(f"/api/staff/{user_id('kofi@example.com')}", json={"name": "X"}).status_code == 404


def test_delete_staff_clears_assignments(client, admin_client):
    staff_id = user_id(STAFF[0])
    booking = client.post("/api/bookings", json=booking_payload()).get_json()
    admin_client.patch(f"/api/bookings/{booking['id']}", json={"assignedStaffId": staff_id})

    assert admin_client.delete(f"/api/staff/{staff_id}").status_code == 200
    assert db.session.get(User, staff_id) is None
    assert db.session.get(Booking, booking["id"]).assigned_staff_id is None


def test_admin_cannot_delete_self(admin_client):
    response = admin_client.delete(f"/api/staff/{user_id(ADMIN[0])}")
    assert response.status_code == 400
    assert response.get_json()["error"] == "You cannot delete your own account"


def test_staff_member_with_own_bookings_is_kept(admin_client, staff_client):
    staff_id = user_id(STAFF[0])
    booking = staff_client.post(
        "/api/bookings", json=booking_payload(guestName=None, guestPhone=None)).get_json()
    assert booking["userId"] == staff_id

    response = admin_client.delete(f"/api/staff/{staff_id}")
    assert response.status_code == 409
    assert response.get_json()["type"] == "Conflict"
    assert db.session.get(User, staff_id) is not None
    assert db.session.get(Booking, booking["id"]).user_id == staff_id


def test_login_stores_only_the_account_id(client):
    login(client, *STAFF)
    with client.session_transaction() as sess:
        assert dict(sess) == {"user_id": user_id(STAFF[0])}
