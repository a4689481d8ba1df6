"""Tests for phone + PIN sign-in and bearer tokens."""
from __future__ import annotations

from salonbook.extensions import db
from salonbook.models import ROLE_ADMIN, SALON_APPROVED, Salon, User

ADMIN_PHONE = "01940308516"


def _login(client, **overrides):
    payload = {"name": "Nadia Islam", "phone": "01711000001", "role": "USER", "pin": "4321"}
    payload.update(overrides)
    return client.post("/auth/login", json=payload)


def test_first_login_registers_user_and_returns_token(client) -> None:
    response = _login(client)

    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["phone"] == "01711000001"
    assert body["user"]["role"] == "USER"

    me = client.get("/users/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["name"] == "Nadia Islam"


def test_wrong_pin_is_rejected(client) -> None:
    _login(client)

    response = _login(client, pin="9999")

    assert response.status_code == 401
    assert response.get_json()["error"] == "unauthorized"


def test_pin_must_be_four_digits(client) -> None:
    response = _login(client, pin="12a4")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_login_refreshes_name_and_role(app, client) -> None:
    _login(client)
    response = _login(client, name="Nadia I.", role="OWNER")

    assert response.status_code == 200
    with app.app_context():
        user = User.query.filter_by(phone="01711000001").one()
        assert user.name == "Nadia I."
        assert user.role == "OWNER"


def test_first_owner_login_opens_an_approved_salon(app, client) -> None:
    response = _login(client, name="Karim", role="OWNER", phone="01811000002")

    assert response.status_code == 200
    with app.app_context():
        salon = Salon.query.filter_by(owner_id=response.get_json()["user"]["id"]).one()
        assert salon.name == "Karim's Salon"
        assert salon.status == SALON_APPROVED
        assert salon.is_active is True
        assert salon.rating == 5.0

    _login(client, name="Karim", role="OWNER", phone="01811000002")
    with app.app_context():
        assert Salon.query.count() == 1


def test_reserved_admin_phone(client) -> None:
    as_user = _login(client, phone=ADMIN_PHONE, pin="1234")
    as_admin = _login(client, phone=ADMIN_PHONE, role="ADMIN", pin="1234", name="Boss")

    assert as_user.status_code == 403
    assert as_user.get_json()["error"] == "phone_reserved"
    assert as_admin.status_code == 200
    assert as_admin.get_json()["user"]["role"] == ROLE_ADMIN


def test_admin_role_on_other_phone_is_forbidden(client) -> None:
    response = _login(client, role="ADMIN")

    assert response.status_code == 403
    assert response.get_json()["error"] == "forbidden"


def test_invalid_or_missing_token(client) -> None:
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_update_profile(client, make_user, auth_for) -> None:
    user_id = make_user()

    response = client.put(
        "/users/me",
        json={"name": "New Name", "address": "Road 7, Dhanmondi"},
        headers=auth_for(user_id),
    )

    assert response.status_code == 200
    assert response.get_json()["user"]["address"] == "Road 7, Dhanmondi"
    assert client.put("/users/me", json={"name": "  "}, headers=auth_for(user_id)).status_code == 400


def test_role_gated_route_rejects_customers(client, make_user, auth_for) -> None:
    user_id = make_user()

    response = client.get("/owner/salon", headers=auth_for(user_id))

    assert response.status_code == 403


def test_users_table_untouched_by_failed_login(app, client) -> None:
    _login(client, role="ADMIN")

    with app.app_context():
        assert db.session.query(User).count() == 0


def test_non_string_phone_or_name_is_invalid(client) -> None:
    by_phone = _login(client, phone=1711111111)
    by_name = _login(client, name=["Nadia"])

    assert by_phone.status_code == 400
    assert by_phone.get_json()["error"] == "invalid_payload"
    assert by_name.status_code == 400


def test_profile_fields_must_be_text(client, make_user, auth_for) -> None:
    headers = auth_for(make_user())

    assert client.put("/users/me", json={"name": 7}, headers=headers).status_code == 400
    assert client.put("/users/me", json={"address": {"road": 7}}, headers=headers).status_code == 400
