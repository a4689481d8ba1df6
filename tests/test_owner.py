"""Tests for the salon owner routes."""
from __future__ import annotations

from datetime import date, datetime

import pytest

from salonbook.extensions import db
from salonbook.models import BOOKING_COMPLETED, Booking, Salon


@pytest.fixture
def booked(client, make_salon, make_user, auth_for, freeze_local_now):
    freeze_local_now(datetime(2026, 3, 12, 9, 0))
    shop = make_salon()
    customer_id = make_user(name="Nadia")
    response = client.post(
        "/bookings",
        json={"salon_id": shop.salon_id, "service_ids": shop.service_ids, "date": "2026-03-14", "time": "11:00 AM"},
        headers=auth_for(customer_id),
    )
    shop.customer_id = customer_id
    shop.booking_id = response.get_json()["booking"]["id"]
    return shop


def test_owner_accepts_then_completes(client, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    accepted = client.put(f"/bookings/{booked.booking_id}/status", json={"status": "CONFIRMED"}, headers=headers)
    completed = client.put(f"/bookings/{booked.booking_id}/status", json={"status": "COMPLETED"}, headers=headers)

    assert accepted.status_code == 200
    assert completed.get_json()["booking"]["status"] == "COMPLETED"

    inbox = client.get("/notifications", headers=auth_for(booked.customer_id)).get_json()["notifications"]
    assert {n["message"] for n in inbox} == {
        "Shear Delight accepted your booking.",
        "Shear Delight completed your booking.",
    }


def test_invalid_transition_is_conflict(client, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    response = client.put(f"/bookings/{booked.booking_id}/status", json={"status": "COMPLETED"}, headers=headers)

    assert response.status_code == 409
    assert response.get_json()["error"] == "invalid_state_transition"


def test_unknown_status_is_invalid(client, auth_for, booked) -> None:
    response = client.put(
        f"/bookings/{booked.booking_id}/status", json={"status": "DONE"}, headers=auth_for(booked.owner_id)
    )

    assert response.status_code == 400


def test_other_owner_cannot_update(client, make_salon, auth_for, booked) -> None:
    rival = make_salon(name="Rival", owner_name="Rival Owner")

    response = client.put(
        f"/bookings/{booked.booking_id}/status", json={"status": "CONFIRMED"}, headers=auth_for(rival.owner_id)
    )

    assert response.status_code == 403


def test_owner_lists_bookings_by_status(client, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    pending = client.get("/owner/bookings?status=pending", headers=headers).get_json()["bookings"]
    confirmed = client.get("/owner/bookings?status=CONFIRMED", headers=headers).get_json()["bookings"]

    assert [b["customer_name"] for b in pending] == ["Nadia"]
    assert confirmed == []


def test_owner_edits_salon_and_hides_it(client, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    response = client.put("/owner/salon", json={"name": "Shear Bliss", "is_active": False}, headers=headers)

    assert response.status_code == 200
    assert response.get_json()["salon"]["name"] == "Shear Bliss"
    assert client.get("/salons").get_json()["salons"] == []
    assert client.put("/owner/salon", json={"is_active": "no"}, headers=headers).status_code == 400


def test_service_crud_keeps_booking_price(client, app, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    created = client.post(
        "/owner/salon/services",
        json={"name": "Facial", "price": 500, "duration_minutes": 45},
        headers=headers,
    )
    service_id = booked.service_ids[0]
    updated = client.put(f"/owner/salon/services/{service_id}", json={"price": 900}, headers=headers)
    deleted = client.delete(f"/owner/salon/services/{created.get_json()['service']['id']}", headers=headers)

    assert created.status_code == 201
    assert updated.get_json()["service"]["price"] == 900
    assert deleted.status_code == 200
    with app.app_context():
        assert db.session.get(Booking, booked.booking_id).total_price == 230
    assert client.post("/owner/salon/services", json={"name": "Bad", "price": -1, "duration_minutes": 10},
                       headers=headers).status_code == 400


def test_payment_status_and_remittance(client, app, auth_for, booked, freeze_local_now) -> None:
    freeze_local_now(datetime(2026, 3, 12, 9, 0))
    with app.app_context():
        db.session.get(Booking, booked.booking_id).status = BOOKING_COMPLETED
        db.session.add(Booking(user_id=booked.customer_id, salon_id=booked.salon_id, service_ids=[],
                               booking_date=date(2026, 3, 2), time_label="10:00 AM",
                               status=BOOKING_COMPLETED, total_price=9770))
        db.session.commit()
    headers = auth_for(booked.owner_id)

    status = client.get("/owner/payment-status", headers=headers).get_json()["payment_status"]
    assert status["total_earnings"] == 10_000
    assert status["debt"] == 1000
    assert status["is_due"] is True

    submitted = client.post("/owner/payments", json={"amount": 1000, "trx_id": "8N7A6B5C"}, headers=headers)
    assert submitted.status_code == 201
    assert submitted.get_json()["payment"]["status"] == "PENDING"

    # Unconfirmed remittances do not reduce the debt.
    assert client.get("/owner/payment-status", headers=headers).get_json()["payment_status"]["debt"] == 1000
    assert len(client.get("/owner/payments", headers=headers).get_json()["payments"]) == 1
    assert client.post("/owner/payments", json={"amount": 0, "trx_id": "X"}, headers=headers).status_code == 400


@pytest.mark.parametrize(
    "payload",
    [
        {"name": 5},
        {"location": None},
        {"description": ["long"]},
        {"social_links": "facebook.com/shear"},
        {"portfolio": {"a": 1}},
    ],
)
def test_salon_edit_rejects_wrong_types(client, app, auth_for, booked, payload) -> None:
    response = client.put("/owner/salon", json=payload, headers=auth_for(booked.owner_id))

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"
    with app.app_context():
        salon = db.session.get(Salon, booked.salon_id)
        assert salon.name == "Shear Delight"
        assert salon.location == "Dhanmondi"


def test_salon_edit_accepts_links_and_clears_optional_text(client, auth_for, booked) -> None:
    response = client.put(
        "/owner/salon",
        json={"social_links": {"facebook": "fb.com/shear"}, "portfolio": ["a.jpg"], "description": None},
        headers=auth_for(booked.owner_id),
    )

    salon = response.get_json()["salon"]
    assert response.status_code == 200
    assert salon["social_links"] == {"facebook": "fb.com/shear"}
    assert salon["portfolio"] == ["a.jpg"]
    assert salon["description"] is None


def test_service_and_payment_fields_must_be_typed(client, auth_for, booked) -> None:
    headers = auth_for(booked.owner_id)

    assert client.post("/owner/salon/services", json={"name": 3, "price": 100, "duration_minutes": 30},
                       headers=headers).status_code == 400
    assert client.post("/owner/salon/services", json={"name": "Cut", "price": True, "duration_minutes": 30},
                       headers=headers).status_code == 400
    assert client.post("/owner/payments", json={"amount": 100, "trx_id": 12345},
                       headers=headers).status_code == 400
