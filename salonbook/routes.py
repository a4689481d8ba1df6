"""HTTP routes for customers: sign-in, salon browsing, booking."""
from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import clock
from .admission import SlotAdmissionEngine
from .auth import build_token, current_user, login_or_register
from .errors import InvalidPayload, NotFound, SalonBookError
from .extensions import db
from .lifecycle import customer_can_cancel, customer_cancel
from .listing import LISTING_FILTERS, bookable_salons
from .models import ROLE_USER, Notification, Review, Salon
from .notifications import current_dispatcher
from .repository import BookingRepository
from .reviews import add_review
from .slots import group_by_segment
from .validation import optional_text, text_value

bp = Blueprint("api", __name__)


def error_response(exc: SalonBookError):
    return jsonify(exc.to_dict()), exc.status_code


def parse_date(value: object, field: str = "date") -> date:
    try:
        return date.fromisoformat(str(value))
    except (TypeError, ValueError) as exc:
        raise InvalidPayload(f"{field} must be a date in YYYY-MM-DD format") from exc


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Sign in (or sign up) with phone number and 4-digit PIN.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            phone:
              type: string
            role:
              type: string
              enum: [USER, OWNER, ADMIN]
            pin:
              type: string
          required:
            - name
            - phone
            - pin
    responses:
      200:
        description: Signed in; returns the user and a bearer token
      400:
        description: Invalid payload
      401:
        description: Incorrect PIN
      403:
        description: Phone number reserved
    """
    payload = request.get_json(silent=True) or {}
    try:
        user = login_or_register(
            db.session,
            name=payload.get("name"),
            phone=payload.get("phone"),
            role=payload.get("role") or ROLE_USER,
            pin=payload.get("pin"),
        )
        db.session.commit()
        return jsonify({"user": user.to_dict_basic(), "token": build_token(user)}), 200

    except SalonBookError as exc:
        db.session.rollback()
        current_app.logger.warning("Login rejected: %s", exc.error)
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to sign in", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/users/me")
def get_profile() -> tuple[dict[str, object], int]:
    try:
        user = current_user(db.session)
        return jsonify({"user": user.to_dict_basic()}), 200
    except SalonBookError as exc:
        return error_response(exc)


@bp.put("/users/me")
def update_profile() -> tuple[dict[str, object], int]:
    """Update the signed-in user's name, avatar or address."""
    try:
        user = current_user(db.session)
        payload = request.get_json(silent=True) or {}

        if "name" in payload:
            user.name = text_value(payload.get("name"), "name", required=True)
        if "avatar" in payload:
            user.avatar = optional_text(payload.get("avatar"), "avatar")
        if "address" in payload:
            user.address = optional_text(payload.get("address"), "address")

        db.session.commit()
        return jsonify({"user": user.to_dict_basic()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update profile", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/salons")
def list_salons() -> tuple[dict[str, object], int]:
    """Return bookable salons in admin priority order.
    ---
    tags:
      - Salons
    parameters:
      - name: search
        in: query
        type: string
        description: Match salon name, location or owner name (case-insensitive)
      - name: filter
        in: query
        type: string
        enum: [ALL, TOP_RATED, POPULAR, BUDGET]
        default: ALL
    responses:
      200:
        description: Approved, active, non-suspended salons
      400:
        description: Unknown filter
      500:
        description: Database error
    """
    try:
        search = request.args.get("search", "").strip()
        listing_filter = request.args.get("filter", "ALL").strip().upper() or "ALL"
        if listing_filter not in LISTING_FILTERS:
            return jsonify({"error": "invalid_parameters", "message": f"filter must be one of: {', '.join(LISTING_FILTERS)}"}), 400

        salons = bookable_salons(db.session, clock.local_today(), search, listing_filter)
        return jsonify({
            "salons": [salon.to_dict() for salon in salons],
            "filters": {"search": search, "filter": listing_filter},
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch salons", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/salons/<int:salon_id>")
def get_salon_details(salon_id: int) -> tuple[dict[str, object], int]:
    """Get a salon with its services and reviews."""
    try:
        salon = db.session.get(Salon, salon_id)
        if not salon:
            return jsonify({"error": "not_found", "message": "Salon not found"}), 404

        reviews = Review.query.filter_by(salon_id=salon_id).order_by(Review.created_at.desc()).all()
        payload = salon.to_dict()
        payload["reviews"] = [review.to_dict() for review in reviews]
        return jsonify({"salon": payload}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch salon details", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/salons/<int:salon_id>/availability")
def get_salon_availability(salon_id: int) -> tuple[dict[str, object], int]:
    """List the salon's slots for a date, marking which can still be picked.
    ---
    tags:
      - Bookings
    parameters:
      - name: salon_id
        in: path
        type: integer
        required: true
      - name: date
        in: query
        type: string
        format: date
        description: Defaults to today
    responses:
      200:
        description: Slots grouped into morning, afternoon and evening
      400:
        description: Invalid date
      403:
        description: Salon not bookable
      404:
        description: Salon not found
    """
    try:
        now = clock.local_now()
        date_param = request.args.get("date")
        slot_date = parse_date(date_param) if date_param else now.date()
        if slot_date < now.date():
            raise InvalidPayload("date must be today or later")

        engine = SlotAdmissionEngine(db.session, current_dispatcher(db.session))
        engine.bookable_salon(salon_id, now.date())
        views = engine.slot_views(salon_id, slot_date, now)

        return jsonify({
            "salon_id": salon_id,
            "date": slot_date.isoformat(),
            "segments": group_by_segment(views),
            "available_times": [view.label for view in views if view.available],
        }), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to compute availability", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/salons/<int:salon_id>/reviews")
def get_salon_reviews(salon_id: int) -> tuple[dict[str, object], int]:
    try:
        if not db.session.get(Salon, salon_id):
            return jsonify({"error": "not_found", "message": "Salon not found"}), 404
        reviews = Review.query.filter_by(salon_id=salon_id).order_by(Review.created_at.desc()).all()
        return jsonify({"reviews": [review.to_dict() for review in reviews]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch reviews", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/salons/<int:salon_id>/reviews")
def create_review(salon_id: int) -> tuple[dict[str, object], int]:
    """Review a salon (1-5 stars with a comment); updates its average rating."""
    try:
        user = current_user(db.session)
        salon = db.session.get(Salon, salon_id)
        if not salon:
            raise NotFound("Salon not found")

        payload = request.get_json(silent=True) or {}
        review = add_review(
            db.session,
            salon,
            user,
            payload.get("rating"),
            payload.get("comment"),
            current_dispatcher(db.session),
        )
        db.session.commit()
        return jsonify({"review": review.to_dict(), "salon_rating": salon.rating}), 201

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create review", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/bookings")
def create_booking() -> tuple[dict[str, object], int]:
    """Request a slot at a salon.
    ---
    tags:
      - Bookings
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            salon_id:
              type: integer
            service_ids:
              type: array
              items:
                type: integer
            date:
              type: string
              format: date
            time:
              type: string
              example: "02:30 PM"
          required:
            - salon_id
            - service_ids
            - date
            - time
    responses:
      201:
        description: Booking created in PENDING state
      400:
        description: Invalid payload
      401:
        description: Not signed in
      403:
        description: Salon not bookable
      404:
        description: Salon not found
      409:
        description: Slot already taken; pick another time
    """
    try:
        customer = current_user(db.session)
        payload = request.get_json(silent=True) or {}

        salon_id = payload.get("salon_id")
        time_label = payload.get("time")
        if not salon_id or not time_label or not payload.get("date"):
            raise InvalidPayload("salon_id, service_ids, date and time are required")
        try:
            salon_id = int(salon_id)
        except (TypeError, ValueError) as exc:
            raise InvalidPayload("salon_id must be an integer") from exc

        engine = SlotAdmissionEngine(db.session, current_dispatcher(db.session))
        result = engine.admit(
            customer,
            salon_id,
            parse_date(payload.get("date")),
            str(time_label),
            payload.get("service_ids") or [],
            clock.local_now(),
        )
        if not result.admitted:
            return jsonify({
                "error": result.error,
                "message": "This time slot was just taken. Please pick another time.",
            }), 409

        db.session.commit()
        return jsonify({"message": "Booking request sent", "booking": result.booking.to_dict()}), 201

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create booking", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/bookings")
def list_my_bookings() -> tuple[dict[str, object], int]:
    """The signed-in customer's bookings, newest first, with cancel eligibility."""
    try:
        customer = current_user(db.session)
        now = clock.utc_now()
        bookings = BookingRepository(db.session).for_customer(customer.user_id)

        items = []
        for booking in bookings:
            item = booking.to_dict()
            item["can_cancel"] = customer_can_cancel(booking, now)
            items.append(item)
        return jsonify({"bookings": items}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch bookings", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/bookings/<int:booking_id>/cancel")
def cancel_booking(booking_id: int) -> tuple[dict[str, object], int]:
    """Withdraw a PENDING booking within 60 minutes of sending it."""
    try:
        customer = current_user(db.session)
        booking = BookingRepository(db.session).get(booking_id)
        if not booking:
            raise NotFound("Booking not found")

        customer_cancel(booking, customer, clock.utc_now(), current_dispatcher(db.session))
        db.session.commit()
        return jsonify({"booking": booking.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to cancel booking", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/notifications")
def get_notifications() -> tuple[dict[str, object], int]:
    try:
        user = current_user(db.session)
        unread_only = request.args.get("unread_only", "false").lower() == "true"

        query = Notification.query.filter_by(user_id=user.user_id)
        if unread_only:
            query = query.filter_by(is_read=False)
        notifications = query.order_by(Notification.created_at.desc(), Notification.notification_id.desc()).all()

        return jsonify({
            "notifications": [n.to_dict() for n in notifications],
            "unread_count": sum(1 for n in notifications if not n.is_read),
        }), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch notifications", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.put("/notifications/read-all")
def mark_all_notifications_as_read() -> tuple[dict[str, object], int]:
    try:
        user = current_user(db.session)
        updated_count = Notification.query.filter_by(
            user_id=user.user_id,
            is_read=False
        ).update({"is_read": True})
        db.session.commit()

        return jsonify({
            "message": "all_notifications_marked_as_read",
            "updated_count": updated_count
        }), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to mark all notifications as read", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
