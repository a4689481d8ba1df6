"""Data access for bookings, salons and owner payments.

Repositories wrap the SQLAlchemy session they are given; callers own the
transaction and decide when to commit.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from .models import (BOOKING_COMPLETED, BOOKING_CONFIRMED, BOOKING_PENDING,
                     BOOKING_REJECTED, LIVE_SLOT_INDEX, PAYMENT_CONFIRMED, SALON_APPROVED, Booking,
                     OwnerPayment, Salon, Service)


# SQLite names the columns of a violated unique index rather than the index.
_SQLITE_LIVE_SLOT_MESSAGE = "bookings.salon_id, bookings.booking_date, bookings.time_label"


def is_live_slot_violation(exc: IntegrityError) -> bool:
    diag = getattr(exc.orig, "diag", None)
    if getattr(diag, "constraint_name", None) == LIVE_SLOT_INDEX:
        return True
    message = str(exc.orig)
    return LIVE_SLOT_INDEX in message or _SQLITE_LIVE_SLOT_MESSAGE in message


@dataclass(frozen=True)
class SlotInsertResult:
    """Outcome of inserting a booking under the live-slot unique index."""

    booking: Booking | None = None

    @property
    def inserted(self) -> bool:
        return self.booking is not None

    @property
    def duplicate(self) -> bool:
        return self.booking is None


class BookingRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, booking_id: int) -> Booking | None:
        return self.session.get(Booking, booking_id)

    def occupied_labels(self, salon_id: int, booking_date: date) -> set[str]:
        rows = self.session.query(Booking.time_label).filter(
            Booking.salon_id == salon_id,
            Booking.booking_date == booking_date,
            Booking.status != BOOKING_REJECTED,
        ).all()
        return {row.time_label for row in rows}

    def insert(self, booking: Booking) -> SlotInsertResult:
        """Insert a booking, reporting a lost slot race instead of raising.

        The unique index over (salon_id, booking_date, time_label) for
        non-REJECTED rows decides the race. On a violation the session is
        rolled back, so the insert must be the first write of the unit of work.
        Any other integrity failure is re-raised.
        """
        self.session.add(booking)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if not is_live_slot_violation(exc):
                raise
            return SlotInsertResult()
        return SlotInsertResult(booking)

    def for_customer(self, user_id: int) -> list[Booking]:
        return (
            self.session.query(Booking)
            .options(joinedload(Booking.salon))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    def for_salon(self, salon_id: int, status: str | None = None) -> list[Booking]:
        query = (
            self.session.query(Booking)
            .options(joinedload(Booking.customer))
            .filter(Booking.salon_id == salon_id)
        )
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.booking_date.desc(), Booking.created_at.desc()).all()

    def awaiting_reminder(self, booking_date: date) -> list[Booking]:
        return (
            self.session.query(Booking)
            .options(joinedload(Booking.salon), joinedload(Booking.customer))
            .filter(
                Booking.booking_date == booking_date,
                Booking.status.in_([BOOKING_PENDING, BOOKING_CONFIRMED]),
                Booking.reminder_sent_at.is_(None),
            )
            .all()
        )

    def completed_earnings(self, salon_id: int) -> int:
        total = self.session.query(func.coalesce(func.sum(Booking.total_price), 0)).filter(
            Booking.salon_id == salon_id,
            Booking.status == BOOKING_COMPLETED,
        ).scalar()
        return int(total or 0)

    def delete_for_salon(self, salon_id: int) -> int:
        return self.session.query(Booking).filter(Booking.salon_id == salon_id).delete(
            synchronize_session=False
        )

    def delete_for_customer(self, user_id: int) -> int:
        return self.session.query(Booking).filter(Booking.user_id == user_id).delete(
            synchronize_session=False
        )


class SalonRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, salon_id: int) -> Salon | None:
        return self.session.get(Salon, salon_id)

    def for_owner(self, owner_id: int) -> Salon | None:
        return self.session.query(Salon).filter(Salon.owner_id == owner_id).first()

    def all_by_priority(self) -> list[Salon]:
        salons = (
            self.session.query(Salon)
            .options(joinedload(Salon.owner), selectinload(Salon.services))
            .all()
        )
        # Python's sort is stable, so equal ranks keep id order.
        return sorted(sorted(salons, key=lambda s: s.salon_id), key=lambda s: s.sort_rank)

    def approved_and_active(self) -> list[Salon]:
        return [salon for salon in self.all_by_priority() if salon.is_active and salon.status == SALON_APPROVED]

    def services_by_id(self, salon_id: int, service_ids: list[int]) -> dict[int, Service]:
        services = self.session.query(Service).filter(
            Service.salon_id == salon_id,
            Service.service_id.in_(service_ids),
        ).all()
        return {service.service_id: service for service in services}


class PaymentRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, payment_id: int) -> OwnerPayment | None:
        return self.session.get(OwnerPayment, payment_id)

    def confirmed_total(self, owner_id: int) -> int:
        total = self.session.query(func.coalesce(func.sum(OwnerPayment.amount), 0)).filter(
            OwnerPayment.owner_id == owner_id,
            OwnerPayment.status == PAYMENT_CONFIRMED,
        ).scalar()
        return int(total or 0)

    def for_owner(self, owner_id: int) -> list[OwnerPayment]:
        return (
            self.session.query(OwnerPayment)
            .filter(OwnerPayment.owner_id == owner_id)
            .order_by(OwnerPayment.created_at.desc())
            .all()
        )

    def all(self, status: str | None = None) -> list[OwnerPayment]:
        query = self.session.query(OwnerPayment).options(joinedload(OwnerPayment.owner))
        if status:
            query = query.filter(OwnerPayment.status == status)
        return query.order_by(OwnerPayment.created_at.desc()).all()
