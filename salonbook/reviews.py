"""Salon reviews and the running average rating."""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from .errors import InvalidPayload
from .models import Review, Salon, User
from .notifications import NotificationDispatcher
from .validation import text_value


def add_review(
    session: Session,
    salon: Salon,
    author: User,
    rating: object,
    comment: str,
    dispatcher: NotificationDispatcher,
) -> Review:
    try:
        rating = int(rating)
    except (TypeError, ValueError) as exc:
        raise InvalidPayload("rating must be an integer between 1 and 5") from exc
    if not 1 <= rating <= 5:
        raise InvalidPayload("rating must be an integer between 1 and 5")
    comment = text_value(comment, "comment", required=True)

    review = Review(
        salon_id=salon.salon_id,
        user_id=author.user_id,
        user_name=author.name,
        user_avatar=author.avatar,
        rating=rating,
        comment=comment,
    )
    session.add(review)
    session.flush()

    average = session.query(func.avg(Review.rating)).filter(Review.salon_id == salon.salon_id).scalar()
    salon.rating = round(float(average), 1)

    dispatcher.notify(
        salon.owner_id,
        "New review",
        f"{author.name} rated your salon {rating} stars.",
    )
    return review
