"""Slot admission: deciding whether a requested slot may become a booking."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

from . import slots
from .commission import CommissionEvaluator
from .errors import InvalidPayload, NotFound, SalonNotBookable
from .models import BOOKING_PENDING, Booking, Salon, Service, User
from .notifications import NotificationDispatcher
from .repository import BookingRepository, SalonRepository

logger = logging.getLogger(__name__)

DUPLICATE_BOOKING = "duplicate_booking"


@dataclass(frozen=True)
class AdmissionResult:
    booking: Booking | None = None
    error: str | None = None

    @property
    def admitted(self) -> bool:
        return self.booking is not None


class SlotAdmissionEngine:
    def __init__(self, session: Session, dispatcher: NotificationDispatcher):
        self.session = session
        self.bookings = BookingRepository(session)
        self.salons = SalonRepository(session)
        self.commission = CommissionEvaluator(session)
        self.dispatcher = dispatcher

    def bookable_salon(self, salon_id: int, today: date) -> Salon:
        salon = self.salons.get(salon_id)
        if salon is None:
            raise NotFound("Salon not found")
        if not self.commission.is_bookable(salon, today):
            raise SalonNotBookable("This salon is not accepting bookings right now")
        return salon

    def slot_views(self, salon_id: int, slot_date: date, now: datetime) -> list[slots.SlotView]:
        occupied = self.bookings.occupied_labels(salon_id, slot_date)
        return slots.build_slot_views(slot_date, occupied, now)

    def admit(
        self,
        customer: User,
        salon_id: int,
        slot_date: date,
        time_label: str,
        service_ids: list[int],
        now: datetime,
    ) -> AdmissionResult:
        """Create a PENDING booking for the slot or report it as taken.

        ``now`` is local wall-clock time. Bookability is checked before any
        slot logic runs. The occupancy pre-check only saves a round trip; the
        unique index on live slots is what settles concurrent requests.
        """
        salon = self.bookable_salon(salon_id, now.date())

        if slot_date < now.date():
            raise InvalidPayload("date must be today or later")
        if not slots.is_valid_label(time_label):
            raise InvalidPayload(f"Unknown time slot: {time_label}")

        services = self._selected_services(salon, service_ids)

        if time_label in self.bookings.occupied_labels(salon.salon_id, slot_date):
            return AdmissionResult(error=DUPLICATE_BOOKING)

        booking = Booking(
            user_id=customer.user_id,
            salon_id=salon.salon_id,
            service_ids=[service.service_id for service in services],
            booking_date=slot_date,
            time_label=time_label,
            status=BOOKING_PENDING,
            total_price=sum(service.price for service in services),
        )
        owner_id = salon.owner_id
        customer_id, customer_name = customer.user_id, customer.name

        inserted = self.bookings.insert(booking)
        if inserted.duplicate:
            logger.warning(
                "Slot race lost for salon %s on %s at %s (customer %s)",
                salon_id, slot_date, time_label, customer_id,
            )
            return AdmissionResult(error=DUPLICATE_BOOKING)

        self.dispatcher.notify(
            owner_id,
            "New booking!",
            f"{customer_name or 'A customer'} sent a booking request.",
        )
        logger.info("Booking %s admitted for salon %s", booking.booking_id, salon_id)
        return AdmissionResult(booking=inserted.booking)

    def _selected_services(self, salon: Salon, service_ids: list[int]) -> list[Service]:
        # JSON true/false and fractional numbers are not service ids.
        if not isinstance(service_ids, list) or any(
            isinstance(item, bool) or not isinstance(item, (int, str)) for item in service_ids
        ):
            raise InvalidPayload("service_ids must be a list of integers")
        if not service_ids:
            raise InvalidPayload("Select at least one service")
        try:
            ordered_ids = list(dict.fromkeys(int(service_id) for service_id in service_ids))
        except (TypeError, ValueError) as exc:
            raise InvalidPayload("service_ids must be integers") from exc

        found = self.salons.services_by_id(salon.salon_id, ordered_ids)
        missing = [service_id for service_id in ordered_ids if service_id not in found]
        if missing:
            raise InvalidPayload(f"Services not offered by this salon: {missing}")
        return [found[service_id] for service_id in ordered_ids]
