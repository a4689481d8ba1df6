"""Database models for the SalonBook backend."""
from __future__ import annotations

from sqlalchemy import text

from .clock import utc_now
from .extensions import db

BOOKING_PENDING = "PENDING"
BOOKING_CONFIRMED = "CONFIRMED"
BOOKING_COMPLETED = "COMPLETED"
BOOKING_REJECTED = "REJECTED"
BOOKING_STATUSES = (BOOKING_PENDING, BOOKING_CONFIRMED, BOOKING_COMPLETED, BOOKING_REJECTED)

PAYMENT_PENDING = "PENDING"
PAYMENT_CONFIRMED = "CONFIRMED"

SALON_APPROVED = "approved"
SALON_PENDING = "pending"
SALON_REJECTED = "rejected"
SALON_STATUSES = (SALON_APPROVED, SALON_PENDING, SALON_REJECTED)

ROLE_USER = "USER"
ROLE_OWNER = "OWNER"
ROLE_ADMIN = "ADMIN"
USER_ROLES = (ROLE_USER, ROLE_OWNER, ROLE_ADMIN)

LIVE_SLOT_INDEX = "uq_bookings_live_slot"

# Salons without an admin-assigned rank sort after every ranked one.
DEFAULT_PRIORITY = 99


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(30), unique=True, nullable=False)
    role = db.Column(
        db.Enum(
            *USER_ROLES,
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default=ROLE_USER,
    )
    pin_hash = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.Text)
    address = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    salon = db.relationship("Salon", back_populates="owner", uselist=False)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "role": self.role,
            "avatar": self.avatar,
            "address": self.address,
        }


class Salon(db.Model):
    __tablename__ = "salons"

    salon_id = db.Column(db.Integer, primary_key=True)
    # One salon per owner account.
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), unique=True, nullable=False)
    name = db.Column(db.String(150), nullable=False)
    location = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text)
    image = db.Column(db.Text)
    owner_phone = db.Column(db.String(30))
    map_link = db.Column(db.String(500))
    opens_at = db.Column(db.String(20))
    closes_at = db.Column(db.String(20))
    social_links = db.Column(db.JSON, nullable=True, default=dict)
    portfolio = db.Column(db.JSON, nullable=True, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(
        db.Enum(
            *SALON_STATUSES,
            name="salon_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default=SALON_PENDING,
    )
    rating = db.Column(db.Float, nullable=False, default=5.0)
    priority = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    owner = db.relationship("User", back_populates="salon")
    services = db.relationship(
        "Service",
        back_populates="salon",
        cascade="all, delete-orphan",
        order_by="Service.service_id",
    )

    @property
    def sort_rank(self) -> int:
        return self.priority if self.priority is not None else DEFAULT_PRIORITY

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.salon_id,
            "owner_id": self.owner_id,
            "owner_name": self.owner.name if self.owner else None,
            "owner_photo": self.owner.avatar if self.owner else None,
            "owner_phone": self.owner_phone,
            "name": self.name,
            "location": self.location,
            "description": self.description,
            "image": self.image,
            "map_link": self.map_link,
            "business_hours": {"open": self.opens_at, "close": self.closes_at},
            "social_links": self.social_links or {},
            "portfolio": self.portfolio or [],
            "is_active": bool(self.is_active),
            "status": self.status,
            "rating": self.rating,
            "priority": self.priority,
            "services": [service.to_dict() for service in self.services],
        }


class Service(db.Model):
    """Services offered by a salon."""

    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    image = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    salon = db.relationship("Salon", back_populates="services")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "salon_id": self.salon_id,
            "name": self.name,
            "price": self.price,
            "duration_minutes": self.duration_minutes,
            "image": self.image,
        }


class Booking(db.Model):
    """A customer's request for one slot at one salon."""

    __tablename__ = "bookings"
    __table_args__ = (
        # At most one live booking per slot; REJECTED rows free the slot again.
        db.Index(
            LIVE_SLOT_INDEX,
            "salon_id",
            "booking_date",
            "time_label",
            unique=True,
            sqlite_where=text("status != 'REJECTED'"),
            postgresql_where=text("status != 'REJECTED'"),
        ),
    )

    booking_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    service_ids = db.Column(db.JSON, nullable=False, default=list)
    booking_date = db.Column(db.Date, nullable=False)
    time_label = db.Column(db.String(8), nullable=False)
    status = db.Column(
        db.Enum(
            *BOOKING_STATUSES,
            name="booking_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=BOOKING_PENDING,
        server_default=BOOKING_PENDING,
    )
    total_price = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
    reminder_sent_at = db.Column(db.DateTime, nullable=True)

    salon = db.relationship("Salon")
    customer = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.booking_id,
            "user_id": self.user_id,
            "customer_name": self.customer.name if self.customer else None,
            "salon_id": self.salon_id,
            "salon_name": self.salon.name if self.salon else None,
            "service_ids": list(self.service_ids or []),
            "date": self.booking_date.isoformat() if self.booking_date else None,
            "time": self.time_label,
            "status": self.status,
            "total_price": self.total_price,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class OwnerPayment(db.Model):
    """A commission remittance claimed by a salon owner."""

    __tablename__ = "owner_payments"

    payment_id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    paid_on = db.Column(db.Date, nullable=False)
    trx_id = db.Column(db.String(100), nullable=False)
    status = db.Column(
        db.Enum(
            PAYMENT_PENDING,
            PAYMENT_CONFIRMED,
            name="owner_payment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default=PAYMENT_PENDING,
        server_default=PAYMENT_PENDING,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    owner = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.payment_id,
            "owner_id": self.owner_id,
            "owner_name": self.owner.name if self.owner else None,
            "amount": self.amount,
            "date": self.paid_on.isoformat() if self.paid_on else None,
            "trx_id": self.trx_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Notification(db.Model):
    __tablename__ = "notifications"

    notification_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False, server_default="0")
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.notification_id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "is_read": bool(self.is_read),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Review(db.Model):
    """Customer reviews and ratings for salons."""

    __tablename__ = "reviews"

    review_id = db.Column(db.Integer, primary_key=True)
    salon_id = db.Column(db.Integer, db.ForeignKey("salons.salon_id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    user_name = db.Column(db.String(100), nullable=False)
    user_avatar = db.Column(db.Text)
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.review_id,
            "salon_id": self.salon_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_avatar": self.user_avatar,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
