"""Tests for commission debt and payment suspension."""
from __future__ import annotations

from datetime import date

from salonbook.commission import CommissionEvaluator, compute_commission_status
from salonbook.extensions import db
from salonbook.models import (BOOKING_COMPLETED, BOOKING_CONFIRMED, PAYMENT_CONFIRMED,
                              PAYMENT_PENDING, Booking, OwnerPayment, Salon)


def test_debt_inside_grace_window_is_due() -> None:
    status = compute_commission_status(total_earnings=10_000, total_paid=0, day=12)

    assert status.debt == 1000
    assert status.is_due is True
    assert status.is_suspended is False


def test_debt_after_grace_window_suspends() -> None:
    status = compute_commission_status(total_earnings=10_000, total_paid=0, day=20)

    assert status.is_due is False
    assert status.is_suspended is True


def test_paid_up_owner_is_never_suspended() -> None:
    status = compute_commission_status(total_earnings=10_000, total_paid=1000, day=20)

    assert status.debt == 0
    assert status.is_suspended is False
    assert status.is_due is False


def test_commission_is_floored_and_threshold_inclusive() -> None:
    assert compute_commission_status(105, 0, 16).debt == 10
    assert compute_commission_status(105, 0, 16).is_suspended is True
    assert compute_commission_status(99, 0, 16).debt == 9
    assert compute_commission_status(99, 0, 16).is_suspended is False


def test_early_month_is_neither_due_nor_suspended() -> None:
    status = compute_commission_status(total_earnings=10_000, total_paid=0, day=9)

    assert status.debt == 1000
    assert not status.is_due
    assert not status.is_suspended


def test_overpayment_never_goes_negative() -> None:
    assert compute_commission_status(1000, 500, 20).debt == 0


def test_evaluator_counts_only_completed_bookings_and_confirmed_payments(app, make_salon, make_user) -> None:
    shop = make_salon()
    customer_id = make_user()

    with app.app_context():
        db.session.add_all([
            Booking(user_id=customer_id, salon_id=shop.salon_id, service_ids=[], booking_date=date(2026, 2, 1),
                    time_label="10:00 AM", status=BOOKING_COMPLETED, total_price=6000),
            Booking(user_id=customer_id, salon_id=shop.salon_id, service_ids=[], booking_date=date(2026, 2, 2),
                    time_label="10:00 AM", status=BOOKING_COMPLETED, total_price=4000),
            Booking(user_id=customer_id, salon_id=shop.salon_id, service_ids=[], booking_date=date(2026, 2, 3),
                    time_label="10:00 AM", status=BOOKING_CONFIRMED, total_price=9000),
            OwnerPayment(owner_id=shop.owner_id, amount=300, trx_id="TRX1", paid_on=date(2026, 2, 5),
                         status=PAYMENT_CONFIRMED),
            OwnerPayment(owner_id=shop.owner_id, amount=700, trx_id="TRX2", paid_on=date(2026, 2, 6),
                         status=PAYMENT_PENDING),
        ])
        db.session.commit()

        status = CommissionEvaluator(db.session).for_owner(shop.owner_id, date(2026, 3, 12))

    assert status.total_earnings == 10_000
    assert status.total_paid == 300
    assert status.debt == 700
    assert status.is_due is True


def test_evaluator_without_salon_reports_nothing(app, make_user) -> None:
    user_id = make_user()

    with app.app_context():
        status = CommissionEvaluator(db.session).for_owner(user_id, date(2026, 3, 20))

    assert status.debt == 0
    assert not status.is_suspended


def test_suspension_outranks_owner_activation(app, make_salon, make_user) -> None:
    shop = make_salon(is_active=True)
    customer_id = make_user()

    with app.app_context():
        db.session.add(Booking(user_id=customer_id, salon_id=shop.salon_id, service_ids=[],
                               booking_date=date(2026, 3, 1), time_label="10:00 AM",
                               status=BOOKING_COMPLETED, total_price=500))
        db.session.commit()
        salon = db.session.get(Salon, shop.salon_id)
        evaluator = CommissionEvaluator(db.session)

        assert evaluator.is_bookable(salon, date(2026, 3, 14)) is True
        assert evaluator.is_bookable(salon, date(2026, 3, 16)) is False
