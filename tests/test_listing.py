"""Tests for the customer salon listing."""
from __future__ import annotations

from datetime import date

import pytest

from salonbook.extensions import db
from salonbook.listing import bookable_salons
from salonbook.models import BOOKING_COMPLETED, SALON_PENDING, Booking

TODAY = date(2026, 3, 20)


def _names(**kwargs) -> list[str]:
    return [salon.name for salon in bookable_salons(db.session, TODAY, **kwargs)]


def test_ranked_salons_come_first_then_creation_order(app, make_salon) -> None:
    make_salon(name="Unranked A", owner_name="A")
    make_salon(name="Second", owner_name="B", priority=2)
    make_salon(name="Unranked C", owner_name="C")
    make_salon(name="First", owner_name="D", priority=1)

    with app.app_context():
        assert _names() == ["First", "Second", "Unranked A", "Unranked C"]


def test_hidden_pending_and_suspended_salons_are_excluded(app, make_salon, make_user) -> None:
    make_salon(name="Visible", owner_name="A")
    make_salon(name="Hidden", owner_name="B", is_active=False)
    make_salon(name="Awaiting review", owner_name="C", status=SALON_PENDING)
    debtor = make_salon(name="Debtor", owner_name="D")
    customer_id = make_user()

    with app.app_context():
        db.session.add(Booking(user_id=customer_id, salon_id=debtor.salon_id, service_ids=[],
                               booking_date=date(2026, 3, 1), time_label="10:00 AM",
                               status=BOOKING_COMPLETED, total_price=10_000))
        db.session.commit()

        assert _names() == ["Visible"]
        # Inside the grace window the debtor is still listed.
        assert [s.name for s in bookable_salons(db.session, date(2026, 3, 12))] == ["Visible", "Debtor"]


def test_search_matches_name_location_and_owner(app, make_salon) -> None:
    make_salon(name="Shear Delight", owner_name="Karim", location="Dhanmondi")
    make_salon(name="Blade Runner", owner_name="Sumi", location="Gulshan")

    with app.app_context():
        assert _names(search="shear") == ["Shear Delight"]
        assert _names(search="GULSHAN") == ["Blade Runner"]
        assert _names(search="karim") == ["Shear Delight"]
        assert _names(search="nowhere") == []


@pytest.mark.parametrize(
    ("listing_filter", "expected"),
    [
        ("ALL", ["Luxe", "Good", "Cheap"]),
        ("TOP_RATED", ["Luxe"]),
        ("POPULAR", ["Luxe", "Good"]),
        ("BUDGET", ["Good", "Cheap"]),
    ],
)
def test_listing_filters(app, make_salon, listing_filter, expected) -> None:
    make_salon(name="Luxe", owner_name="A", rating=4.9, services=(("Spa", 900, 60),))
    make_salon(name="Good", owner_name="B", rating=4.6, services=(("Cut", 200, 30),))
    make_salon(name="Cheap", owner_name="C", rating=3.9, services=(("Cut", 100, 30),))

    with app.app_context():
        assert _names(listing_filter=listing_filter) == expected
