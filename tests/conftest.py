"""pytest configuration: app, client and data helpers."""
from __future__ import annotations

import itertools
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

# Ensure the project root is available on sys.path so tests can import the package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app  # noqa: E402
from salonbook.auth import build_token  # noqa: E402
from salonbook.config import TestingConfig  # noqa: E402
from salonbook.extensions import db  # noqa: E402
from salonbook.models import (ROLE_OWNER, ROLE_USER, SALON_APPROVED, Salon,  # noqa: E402
                              Service, User)

_phones = itertools.count(1)


@pytest.fixture
def app():
    flask_app = create_app(TestingConfig)
    with flask_app.app_context():
        db.create_all()
    yield flask_app
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(name: str = "Rahim Uddin", role: str = ROLE_USER, phone: str | None = None, pin: str = "4321") -> int:
        with app.app_context():
            user = User(
                name=name,
                phone=phone or f"0171{next(_phones):07d}",
                role=role,
                pin_hash=generate_password_hash(pin),
            )
            db.session.add(user)
            db.session.commit()
            return user.user_id
    return _make


@pytest.fixture
def make_salon(app, make_user):
    def _make(
        name: str = "Shear Delight",
        owner_name: str = "Karim Hossain",
        status: str = SALON_APPROVED,
        is_active: bool = True,
        priority: int | None = None,
        rating: float = 5.0,
        location: str = "Dhanmondi",
        services=(("Haircut", 150, 30), ("Beard Trim", 80, 15)),
    ) -> SimpleNamespace:
        owner_id = make_user(name=owner_name, role=ROLE_OWNER)
        with app.app_context():
            salon = Salon(
                owner_id=owner_id,
                name=name,
                location=location,
                status=status,
                is_active=is_active,
                priority=priority,
                rating=rating,
            )
            db.session.add(salon)
            db.session.flush()
            service_rows = [
                Service(salon_id=salon.salon_id, name=svc_name, price=price, duration_minutes=duration)
                for svc_name, price, duration in services
            ]
            db.session.add_all(service_rows)
            db.session.commit()
            return SimpleNamespace(
                salon_id=salon.salon_id,
                owner_id=owner_id,
                service_ids=[service.service_id for service in service_rows],
            )
    return _make


@pytest.fixture
def auth_for(app):
    def _auth(user_id: int) -> dict[str, str]:
        with app.app_context():
            user = db.session.get(User, user_id)
            return {"Authorization": f"Bearer {build_token(user)}"}
    return _auth


@pytest.fixture
def freeze_local_now(monkeypatch):
    """Pin the salon wall clock used by routes and services."""
    def _freeze(moment):
        monkeypatch.setattr("salonbook.clock.local_now", lambda: moment)
    return _freeze
