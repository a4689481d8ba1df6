"""Monthly commission debt and payment suspension.

The state is derived from current data on every call and never stored, so
editing historical bookings or remittances changes it retroactively.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date

from sqlalchemy.orm import Session

from .models import SALON_APPROVED, Salon
from .repository import BookingRepository, PaymentRepository, SalonRepository

COMMISSION_RATE_PERCENT = 10
DEBT_THRESHOLD = 10
GRACE_WINDOW_START_DAY = 10
GRACE_WINDOW_END_DAY = 15


@dataclass(frozen=True)
class CommissionStatus:
    total_earnings: int
    commission_target: int
    total_paid: int
    debt: int
    is_due: bool
    is_suspended: bool

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


NO_COMMISSION = CommissionStatus(0, 0, 0, 0, False, False)


def compute_commission_status(total_earnings: int, total_paid: int, day: int) -> CommissionStatus:
    commission_target = total_earnings * COMMISSION_RATE_PERCENT // 100
    debt = max(0, commission_target - total_paid)
    owes = debt >= DEBT_THRESHOLD
    return CommissionStatus(
        total_earnings=total_earnings,
        commission_target=commission_target,
        total_paid=total_paid,
        debt=debt,
        is_due=owes and GRACE_WINDOW_START_DAY <= day <= GRACE_WINDOW_END_DAY,
        is_suspended=owes and day > GRACE_WINDOW_END_DAY,
    )


class CommissionEvaluator:
    def __init__(self, session: Session):
        self.bookings = BookingRepository(session)
        self.payments = PaymentRepository(session)
        self.salons = SalonRepository(session)

    def for_salon(self, salon: Salon, today: date) -> CommissionStatus:
        return compute_commission_status(
            total_earnings=self.bookings.completed_earnings(salon.salon_id),
            total_paid=self.payments.confirmed_total(salon.owner_id),
            day=today.day,
        )

    def for_owner(self, owner_id: int, today: date) -> CommissionStatus:
        salon = self.salons.for_owner(owner_id)
        if salon is None:
            return NO_COMMISSION
        return self.for_salon(salon, today)

    def is_bookable(self, salon: Salon, today: date) -> bool:
        # Suspension outranks the owner's own activation switch.
        if not salon.is_active or salon.status != SALON_APPROVED:
            return False
        return not self.for_salon(salon, today).is_suspended
