"""Routes for salon owners: their salon, services, bookings and commission."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import clock
from .auth import current_user
from .commission import CommissionEvaluator
from .errors import InvalidPayload, NotFound, SalonBookError
from .extensions import db
from .lifecycle import owner_transition
from .models import BOOKING_STATUSES, ROLE_OWNER, OwnerPayment, Service
from .notifications import current_dispatcher
from .repository import BookingRepository, PaymentRepository, SalonRepository
from .routes import error_response, parse_date
from .validation import optional_text, text_value

bp_owner = Blueprint("owner", __name__)

EDITABLE_SALON_FIELDS = ("name", "location", "description", "image", "owner_phone", "map_link",
                         "opens_at", "closes_at", "social_links", "portfolio")
REQUIRED_SALON_FIELDS = ("name",)
NON_NULL_SALON_FIELDS = ("name", "location")
JSON_SALON_FIELDS = {"social_links": dict, "portfolio": list}


def _owner_salon(owner):
    salon = SalonRepository(db.session).for_owner(owner.user_id)
    if salon is None:
        raise NotFound("You do not have a salon yet")
    return salon


def _salon_fields(payload: dict) -> dict[str, object]:
    fields: dict[str, object] = {}
    for field in EDITABLE_SALON_FIELDS:
        if field not in payload:
            continue
        value = payload[field]
        if field in JSON_SALON_FIELDS:
            expected = JSON_SALON_FIELDS[field]
            if value is not None and not isinstance(value, expected):
                raise InvalidPayload(f"{field} must be a JSON {'object' if expected is dict else 'array'}")
            fields[field] = value
        elif field in NON_NULL_SALON_FIELDS:
            if value is None:
                raise InvalidPayload(f"{field} cannot be null")
            fields[field] = text_value(value, field, required=field in REQUIRED_SALON_FIELDS)
        else:
            fields[field] = optional_text(value, field)
    return fields


def _service_fields(payload: dict, partial: bool = False) -> dict[str, object]:
    fields: dict[str, object] = {}

    if "name" in payload or not partial:
        fields["name"] = text_value(payload.get("name"), "name", required=True)

    for key in ("price", "duration_minutes"):
        if key in payload or not partial:
            value = payload.get(key)
            if isinstance(value, bool):
                raise InvalidPayload(f"{key} must be an integer")
            try:
                value = int(value)
            except (TypeError, ValueError) as exc:
                raise InvalidPayload(f"{key} must be an integer") from exc
            if value < 0 or (key == "duration_minutes" and value == 0):
                raise InvalidPayload("price must be >= 0 and duration_minutes must be > 0")
            fields[key] = value

    if "image" in payload:
        fields["image"] = optional_text(payload.get("image"), "image")
    return fields


@bp_owner.get("/owner/salon")
def get_own_salon() -> tuple[dict[str, object], int]:
    try:
        owner = current_user(db.session, ROLE_OWNER)
        return jsonify({"salon": _owner_salon(owner).to_dict()}), 200
    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch owner salon", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.put("/owner/salon")
def update_own_salon() -> tuple[dict[str, object], int]:
    """Edit salon details and the owner's visibility switch.
    ---
    tags:
      - Owner
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            name:
              type: string
            location:
              type: string
            is_active:
              type: boolean
    responses:
      200:
        description: Salon updated
      400:
        description: Invalid input
      403:
        description: Not an owner
      500:
        description: Database error
    """
    try:
        owner = current_user(db.session, ROLE_OWNER)
        salon = _owner_salon(owner)
        payload = request.get_json(silent=True) or {}

        for field, value in _salon_fields(payload).items():
            setattr(salon, field, value)
        if "is_active" in payload:
            if not isinstance(payload["is_active"], bool):
                raise InvalidPayload("is_active must be a boolean")
            salon.is_active = payload["is_active"]

        db.session.commit()
        return jsonify({"salon": salon.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update salon", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.post("/owner/salon/services")
def create_service() -> tuple[dict[str, object], int]:
    """Add a service to the owner's salon."""
    try:
        owner = current_user(db.session, ROLE_OWNER)
        salon = _owner_salon(owner)
        fields = _service_fields(request.get_json(silent=True) or {})

        service = Service(salon_id=salon.salon_id, **fields)
        db.session.add(service)
        db.session.commit()
        return jsonify({"message": "Service created successfully", "service": service.to_dict()}), 201

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.put("/owner/salon/services/<int:service_id>")
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    # Existing bookings keep the price they were created with.
    try:
        owner = current_user(db.session, ROLE_OWNER)
        salon = _owner_salon(owner)
        service = Service.query.filter_by(service_id=service_id, salon_id=salon.salon_id).first()
        if not service:
            raise NotFound("Service not found")

        for field, value in _service_fields(request.get_json(silent=True) or {}, partial=True).items():
            setattr(service, field, value)
        db.session.commit()
        return jsonify({"service": service.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.delete("/owner/salon/services/<int:service_id>")
def delete_service(service_id: int) -> tuple[dict[str, str], int]:
    try:
        owner = current_user(db.session, ROLE_OWNER)
        salon = _owner_salon(owner)
        service = Service.query.filter_by(service_id=service_id, salon_id=salon.salon_id).first()
        if not service:
            raise NotFound("Service not found")

        db.session.delete(service)
        db.session.commit()
        return jsonify({"message": "Service deleted successfully"}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.get("/owner/bookings")
def list_salon_bookings() -> tuple[dict[str, object], int]:
    try:
        owner = current_user(db.session, ROLE_OWNER)
        salon = _owner_salon(owner)
        status = request.args.get("status", "").strip().upper() or None
        if status and status not in BOOKING_STATUSES:
            raise InvalidPayload(f"status must be one of: {', '.join(BOOKING_STATUSES)}")

        bookings = BookingRepository(db.session).for_salon(salon.salon_id, status)
        return jsonify({"bookings": [booking.to_dict() for booking in bookings]}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch salon bookings", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.put("/bookings/<int:booking_id>/status")
def update_booking_status(booking_id: int) -> tuple[dict[str, object], int]:
    """Accept, reject or complete a booking (salon owner only).
    ---
    tags:
      - Bookings
    parameters:
      - in: path
        name: booking_id
        required: true
        schema:
          type: integer
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [CONFIRMED, REJECTED, COMPLETED]
    responses:
      200:
        description: Booking status updated
      400:
        description: Invalid status
      403:
        description: Not the owner of this booking's salon
      404:
        description: Booking not found
      409:
        description: Transition not allowed from the current status
    """
    try:
        owner = current_user(db.session, ROLE_OWNER)
        booking = BookingRepository(db.session).get(booking_id)
        if not booking:
            raise NotFound("Booking not found")

        new_status = str((request.get_json(silent=True) or {}).get("status") or "").upper()
        if new_status not in BOOKING_STATUSES:
            raise InvalidPayload(f"status must be one of: {', '.join(BOOKING_STATUSES)}")

        owner_transition(booking, new_status, owner, current_dispatcher(db.session))
        db.session.commit()
        return jsonify({"booking": booking.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update booking status", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.get("/owner/payment-status")
def get_payment_status() -> tuple[dict[str, object], int]:
    """Current commission debt and due/suspended flags for the owner."""
    try:
        owner = current_user(db.session, ROLE_OWNER)
        status = CommissionEvaluator(db.session).for_owner(owner.user_id, clock.local_today())
        return jsonify({"payment_status": status.to_dict()}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to evaluate commission", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.get("/owner/payments")
def list_own_payments() -> tuple[dict[str, object], int]:
    try:
        owner = current_user(db.session, ROLE_OWNER)
        payments = PaymentRepository(db.session).for_owner(owner.user_id)
        return jsonify({"payments": [payment.to_dict() for payment in payments]}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch payments", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_owner.post("/owner/payments")
def submit_payment() -> tuple[dict[str, object], int]:
    """Claim a commission remittance; it counts once an admin confirms it."""
    try:
        owner = current_user(db.session, ROLE_OWNER)
        payload = request.get_json(silent=True) or {}

        try:
            amount = int(payload.get("amount"))
        except (TypeError, ValueError) as exc:
            raise InvalidPayload("amount must be an integer") from exc
        if amount <= 0:
            raise InvalidPayload("amount must be positive")
        trx_id = text_value(payload.get("trx_id"), "trx_id", required=True)
        paid_on = parse_date(payload["date"]) if payload.get("date") else clock.local_today()

        payment = OwnerPayment(owner_id=owner.user_id, amount=amount, trx_id=trx_id, paid_on=paid_on)
        db.session.add(payment)
        db.session.commit()
        return jsonify({"payment": payment.to_dict()}), 201

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to submit payment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
