"""Admin routes: salon moderation, users and commission remittances."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import clock
from .auth import current_user
from .commission import CommissionEvaluator
from .errors import Forbidden, InvalidPayload, InvalidStateTransition, NotFound, SalonBookError
from .extensions import db
from .models import (PAYMENT_CONFIRMED, PAYMENT_PENDING, ROLE_ADMIN, SALON_APPROVED, SALON_PENDING,
                     SALON_REJECTED, SALON_STATUSES, Notification, OwnerPayment, Review, User)
from .notifications import current_dispatcher
from .repository import BookingRepository, PaymentRepository, SalonRepository
from .routes import error_response

bp_admin = Blueprint("admin", __name__)

SALON_STATUS_MESSAGES = {
    SALON_APPROVED: "Your listing has been approved.",
    SALON_PENDING: "Your listing is pending review.",
    SALON_REJECTED: "Your listing has been rejected.",
}


def _salon_or_404(salon_id: int):
    salon = SalonRepository(db.session).get(salon_id)
    if salon is None:
        raise NotFound("Salon not found")
    return salon


def _delete_salon(salon) -> None:
    BookingRepository(db.session).delete_for_salon(salon.salon_id)
    Review.query.filter_by(salon_id=salon.salon_id).delete(synchronize_session=False)
    db.session.delete(salon)


@bp_admin.get("/admin/salons")
def get_all_salons() -> tuple[dict[str, object], int]:
    """Every salon in priority order with its owner's commission status.
    ---
    tags:
      - Admin
    responses:
      200:
        description: All salons regardless of moderation state
      401:
        description: Not signed in
      403:
        description: Not an admin
    """
    try:
        current_user(db.session, ROLE_ADMIN)
        evaluator = CommissionEvaluator(db.session)
        today = clock.local_today()

        items = []
        for salon in SalonRepository(db.session).all_by_priority():
            item = salon.to_dict()
            item["payment_status"] = evaluator.for_salon(salon, today).to_dict()
            items.append(item)
        return jsonify({"salons": items}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch salons for admin", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.put("/admin/salons/<int:salon_id>/status")
def update_salon_status(salon_id: int) -> tuple[dict[str, object], int]:
    """Approve or reject a salon listing; the owner is notified."""
    try:
        current_user(db.session, ROLE_ADMIN)
        salon = _salon_or_404(salon_id)
        status = str((request.get_json(silent=True) or {}).get("status") or "").lower()
        if status not in SALON_STATUSES:
            raise InvalidPayload(f"status must be one of: {', '.join(SALON_STATUSES)}")

        salon.status = status
        current_dispatcher(db.session).notify(
            salon.owner_id,
            "Salon status",
            SALON_STATUS_MESSAGES[status],
        )
        db.session.commit()
        return jsonify({"salon": salon.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update salon status", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.put("/admin/salons/<int:salon_id>/active")
def toggle_salon_active(salon_id: int) -> tuple[dict[str, object], int]:
    try:
        current_user(db.session, ROLE_ADMIN)
        salon = _salon_or_404(salon_id)
        is_active = (request.get_json(silent=True) or {}).get("is_active")
        if not isinstance(is_active, bool):
            raise InvalidPayload("is_active must be a boolean")

        salon.is_active = is_active
        db.session.commit()
        return jsonify({"salon": salon.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to toggle salon", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.put("/admin/salons/<int:salon_id>/priority")
def update_salon_priority(salon_id: int) -> tuple[dict[str, object], int]:
    """Set the listing rank (1 = top). ``null`` clears it."""
    try:
        current_user(db.session, ROLE_ADMIN)
        salon = _salon_or_404(salon_id)
        priority = (request.get_json(silent=True) or {}).get("priority")
        if priority is not None:
            try:
                priority = int(priority)
            except (TypeError, ValueError) as exc:
                raise InvalidPayload("priority must be an integer") from exc
            if priority < 1:
                raise InvalidPayload("priority must be >= 1")

        salon.priority = priority
        db.session.commit()
        return jsonify({"salon": salon.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update salon priority", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.delete("/admin/salons/<int:salon_id>")
def delete_salon(salon_id: int) -> tuple[dict[str, str], int]:
    """Remove a salon together with its services, bookings and reviews."""
    try:
        current_user(db.session, ROLE_ADMIN)
        _delete_salon(_salon_or_404(salon_id))
        db.session.commit()
        return jsonify({"message": "Salon deleted successfully"}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete salon", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.get("/admin/users")
def get_all_users() -> tuple[dict[str, object], int]:
    try:
        current_user(db.session, ROLE_ADMIN)
        users = User.query.order_by(User.created_at.desc()).all()
        return jsonify({"users": [user.to_dict_basic() for user in users]}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch users", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.delete("/admin/users/<int:user_id>")
def delete_user(user_id: int) -> tuple[dict[str, str], int]:
    """Remove a user, their salon (if any) and their bookings."""
    try:
        admin = current_user(db.session, ROLE_ADMIN)
        if user_id == admin.user_id:
            raise Forbidden("The admin account cannot be deleted")
        user = db.session.get(User, user_id)
        if not user:
            raise NotFound("User not found")

        salon = SalonRepository(db.session).for_owner(user_id)
        if salon is not None:
            _delete_salon(salon)
        BookingRepository(db.session).delete_for_customer(user_id)
        Notification.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        OwnerPayment.query.filter_by(owner_id=user_id).delete(synchronize_session=False)
        Review.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        db.session.delete(user)
        db.session.commit()
        return jsonify({"message": "User deleted successfully"}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete user", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.get("/admin/payments")
def get_all_payments() -> tuple[dict[str, object], int]:
    try:
        current_user(db.session, ROLE_ADMIN)
        status = request.args.get("status", "").strip().upper() or None
        if status and status not in (PAYMENT_PENDING, PAYMENT_CONFIRMED):
            raise InvalidPayload("status must be PENDING or CONFIRMED")

        payments = PaymentRepository(db.session).all(status)
        return jsonify({"payments": [payment.to_dict() for payment in payments]}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch payments", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.put("/admin/payments/<int:payment_id>/confirm")
def confirm_payment(payment_id: int) -> tuple[dict[str, object], int]:
    """Confirm a remittance so it counts against the owner's commission debt.
    ---
    tags:
      - Admin
    responses:
      200:
        description: Payment confirmed and owner notified
      404:
        description: Payment not found
      409:
        description: Payment already confirmed
    """
    try:
        current_user(db.session, ROLE_ADMIN)
        payment = PaymentRepository(db.session).get(payment_id)
        if not payment:
            raise NotFound("Payment not found")
        if payment.status != PAYMENT_PENDING:
            raise InvalidStateTransition("Payment is already confirmed")

        payment.status = PAYMENT_CONFIRMED
        current_dispatcher(db.session).notify(
            payment.owner_id,
            "Payment confirmed",
            "Your commission payment has been received.",
        )
        db.session.commit()
        current_app.logger.info("Owner payment %s confirmed", payment_id)
        return jsonify({"payment": payment.to_dict()}), 200

    except SalonBookError as exc:
        db.session.rollback()
        return error_response(exc)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to confirm payment", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_admin.get("/admin/owners/<int:owner_id>/payment-status")
def get_owner_payment_status(owner_id: int) -> tuple[dict[str, object], int]:
    try:
        current_user(db.session, ROLE_ADMIN)
        if not db.session.get(User, owner_id):
            raise NotFound("User not found")
        status = CommissionEvaluator(db.session).for_owner(owner_id, clock.local_today())
        return jsonify({"owner_id": owner_id, "payment_status": status.to_dict()}), 200

    except SalonBookError as exc:
        return error_response(exc)
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to evaluate commission", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
