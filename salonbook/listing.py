"""Customer-facing salon listing."""
from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from .commission import CommissionEvaluator
from .models import Salon
from .repository import SalonRepository

TOP_RATED_MIN_RATING = 4.8
POPULAR_MIN_RATING = 4.5
BUDGET_MAX_PRICE = 200

LISTING_FILTERS = ("ALL", "TOP_RATED", "POPULAR", "BUDGET")


def _matches_search(salon: Salon, term: str) -> bool:
    if not term:
        return True
    term = term.lower()
    owner_name = salon.owner.name if salon.owner else ""
    return any(term in (value or "").lower() for value in (salon.name, salon.location, owner_name))


def _matches_filter(salon: Salon, listing_filter: str) -> bool:
    if listing_filter == "TOP_RATED":
        return salon.rating >= TOP_RATED_MIN_RATING
    if listing_filter == "POPULAR":
        return salon.rating >= POPULAR_MIN_RATING
    if listing_filter == "BUDGET":
        prices = [service.price for service in salon.services]
        return bool(prices) and min(prices) <= BUDGET_MAX_PRICE
    return True


def bookable_salons(session: Session, today: date, search: str = "", listing_filter: str = "ALL") -> list[Salon]:
    """Approved, active, non-suspended salons in admin priority order."""
    evaluator = CommissionEvaluator(session)
    return [
        salon
        for salon in SalonRepository(session).approved_and_active()
        if not evaluator.for_salon(salon, today).is_suspended
        and _matches_search(salon, search)
        and _matches_filter(salon, listing_filter)
    ]
