"""Booking status state machine.

PENDING -> CONFIRMED | REJECTED, CONFIRMED -> COMPLETED. REJECTED and
COMPLETED are terminal. Owners drive every transition; customers may only
withdraw their own PENDING request shortly after sending it.

Stale PENDING bookings whose slot has passed are left as they are; nothing
expires them automatically.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .clock import as_utc
from .errors import CancellationWindowClosed, Forbidden, InvalidStateTransition
from .models import (BOOKING_COMPLETED, BOOKING_CONFIRMED, BOOKING_PENDING,
                     BOOKING_REJECTED, Booking, User)
from .notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    BOOKING_PENDING: frozenset({BOOKING_CONFIRMED, BOOKING_REJECTED}),
    BOOKING_CONFIRMED: frozenset({BOOKING_COMPLETED}),
    BOOKING_REJECTED: frozenset(),
    BOOKING_COMPLETED: frozenset(),
}

CUSTOMER_CANCELLATION_WINDOW = timedelta(minutes=60)

_OWNER_UPDATE_VERBS = {
    BOOKING_CONFIRMED: "accepted",
    BOOKING_REJECTED: "rejected",
    BOOKING_COMPLETED: "completed",
}


def can_transition(current: str, new_status: str) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def within_cancellation_window(booking: Booking, now: datetime) -> bool:
    """``now`` must be timezone-aware; ``created_at`` is stored in UTC."""
    return as_utc(now) - as_utc(booking.created_at) < CUSTOMER_CANCELLATION_WINDOW


def customer_can_cancel(booking: Booking, now: datetime) -> bool:
    return booking.status == BOOKING_PENDING and within_cancellation_window(booking, now)


def _ensure_transition(booking: Booking, new_status: str) -> None:
    if not can_transition(booking.status, new_status):
        raise InvalidStateTransition(
            f"Cannot move booking from {booking.status} to {new_status}"
        )


def owner_transition(
    booking: Booking,
    new_status: str,
    actor: User,
    dispatcher: NotificationDispatcher,
) -> Booking:
    if booking.salon is None or booking.salon.owner_id != actor.user_id:
        raise Forbidden("Only the salon owner can update this booking")
    _ensure_transition(booking, new_status)

    previous = booking.status
    booking.status = new_status
    dispatcher.notify(
        booking.user_id,
        "Booking update",
        f"{booking.salon.name} {_OWNER_UPDATE_VERBS[new_status]} your booking.",
    )
    logger.info("Booking %s: %s -> %s by owner %s", booking.booking_id, previous, new_status, actor.user_id)
    return booking


def customer_cancel(
    booking: Booking,
    actor: User,
    now: datetime,
    dispatcher: NotificationDispatcher,
) -> Booking:
    if booking.user_id != actor.user_id:
        raise Forbidden("Only the customer who made this booking can cancel it")
    _ensure_transition(booking, BOOKING_REJECTED)
    if booking.status != BOOKING_PENDING or not within_cancellation_window(booking, now):
        raise CancellationWindowClosed(
            "Bookings can only be cancelled within 60 minutes of being sent; contact the salon"
        )

    booking.status = BOOKING_REJECTED
    if booking.salon is not None:
        dispatcher.notify(
            booking.salon.owner_id,
            "Booking cancelled",
            f"Customer {actor.name} cancelled their booking.",
        )
    logger.info("Booking %s cancelled by customer %s", booking.booking_id, actor.user_id)
    return booking
