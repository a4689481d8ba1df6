"""Owner reminders for appointments starting within the hour.

``sweep_upcoming_bookings`` is a single pass; ``ReminderScheduler`` runs it on
a fixed interval in a background thread with its own app context.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from . import clock, slots
from .extensions import db
from .notifications import NotificationDispatcher, current_dispatcher
from .repository import BookingRepository

logger = logging.getLogger(__name__)

REMINDER_LEAD = timedelta(minutes=60)


def sweep_upcoming_bookings(session: Session, dispatcher: NotificationDispatcher, now: datetime) -> int:
    """Notify owners about today's live bookings starting within the lead time.

    ``now`` is local wall-clock time. Each booking is reminded at most once;
    ``reminder_sent_at`` records it. Returns the number of reminders sent.
    """
    sent = 0
    for booking in BookingRepository(session).awaiting_reminder(now.date()):
        if not slots.is_valid_label(booking.time_label):
            logger.warning("Booking %s has unknown time label %r", booking.booking_id, booking.time_label)
            continue
        if booking.salon is None:
            logger.warning("Booking %s has no salon; skipping reminder", booking.booking_id)
            continue
        starts_at = slots.slot_start(booking.booking_date, booking.time_label)
        if starts_at - now > REMINDER_LEAD:
            continue
        customer_name = booking.customer.name if booking.customer else ""
        dispatcher.notify(
            booking.salon.owner_id,
            "Booking reminder!",
            f"Customer {customer_name}'s appointment is within 1 hour.",
        )
        booking.reminder_sent_at = clock.utc_now()
        sent += 1
    session.commit()
    return sent


class ReminderScheduler:
    def __init__(self, app, interval: float = 60):
        self.app = app
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="reminder-sweep", daemon=True)
        self._thread.start()
        logger.info("Reminder sweep started (every %ss)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
        self._thread = None

    def run_once(self) -> int:
        with self.app.app_context():
            try:
                return sweep_upcoming_bookings(db.session, current_dispatcher(db.session), clock.local_now())
            except Exception:
                # One failed pass must not end the timer thread.
                db.session.rollback()
                logger.exception("Reminder sweep failed")
                return 0
            finally:
                db.session.remove()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()
