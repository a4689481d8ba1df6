"""Phone + PIN sign-in and bearer-token identity."""
from __future__ import annotations

from flask import current_app, request
from itsdangerous import BadSignature, URLSafeTimedSerializer
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import Forbidden, InvalidPayload, PhoneReserved, Unauthorized
from .models import (ROLE_ADMIN, ROLE_OWNER, SALON_APPROVED, USER_ROLES, Salon,
                     User)
from .validation import text_value

DEFAULT_SALON_IMAGE = "https://images.unsplash.com/photo-1585747860715-2ba37e788b70?q=80&w=800&auto=format&fit=crop"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="auth-token")


def build_token(user: User) -> str:
    return _serializer().dumps({"user_id": user.user_id})


def get_token_identity() -> int | None:
    """Extract and validate user_id from the Authorization header token.

    Returns the user_id if the token is valid, None if missing or invalid.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]  # Remove "Bearer " prefix

    try:
        payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE_SECONDS"])
    except BadSignature:
        # Invalid or expired token
        return None
    return payload.get("user_id")


def current_user(session: Session, *roles: str) -> User:
    user_id = get_token_identity()
    user = session.get(User, user_id) if user_id else None
    if user is None:
        raise Unauthorized("Sign in to continue")
    if roles and user.role not in roles:
        raise Forbidden(f"This action requires role {' or '.join(roles)}")
    return user


def _validate_pin(pin: str) -> None:
    if not (isinstance(pin, str) and len(pin) == 4 and pin.isdigit()):
        raise InvalidPayload("pin must be 4 digits")


def ensure_super_admin(session: Session) -> User:
    """Make sure the reserved admin account exists."""
    phone = current_app.config["SUPER_ADMIN_PHONE"]
    admin = session.query(User).filter_by(phone=phone).first()
    if admin is None:
        admin = User(
            name="Super Admin",
            phone=phone,
            role=ROLE_ADMIN,
            pin_hash=generate_password_hash(current_app.config["SUPER_ADMIN_PIN"]),
        )
        session.add(admin)
        session.flush()
    return admin


def login_or_register(session: Session, name: str, phone: str, role: str, pin: str) -> User:
    """Sign a user in by phone and PIN, creating the account on first use.

    Name and role are refreshed on every sign-in. The first OWNER sign-in
    opens an approved, active salon for that owner.
    """
    name = text_value(name, "name", required=True)
    phone = text_value(phone, "phone", required=True)
    if role not in USER_ROLES:
        raise InvalidPayload(f"role must be one of: {', '.join(USER_ROLES)}")
    _validate_pin(pin)

    admin_phone = current_app.config["SUPER_ADMIN_PHONE"]
    if phone == admin_phone:
        if role != ROLE_ADMIN:
            raise PhoneReserved("This phone number is reserved")
        ensure_super_admin(session)
    elif role == ROLE_ADMIN:
        raise Forbidden("Admin sign-in is reserved")

    user = session.query(User).filter_by(phone=phone).first()
    if user:
        if not check_password_hash(user.pin_hash, pin):
            raise Unauthorized("Incorrect PIN")
        user.role = role
        user.name = name
    else:
        user = User(name=name, phone=phone, role=role, pin_hash=generate_password_hash(pin))
        session.add(user)
        session.flush()

    if role == ROLE_OWNER and session.query(Salon).filter_by(owner_id=user.user_id).first() is None:
        session.add(Salon(
            owner_id=user.user_id,
            owner_phone=phone,
            name=f"{name}'s Salon",
            location="",
            rating=5.0,
            image=DEFAULT_SALON_IMAGE,
            status=SALON_APPROVED,
            is_active=True,
        ))
    return user
