"""Configuration objects loaded by ``create_app``."""
from __future__ import annotations

import os


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default) in {"1", "true", "True"}


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///salonbook.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Dev fallback only; production deployments must set SECRET_KEY.
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    TOKEN_MAX_AGE_SECONDS = int(os.environ.get("TOKEN_MAX_AGE_SECONDS", 86400))

    # Wall clock for "today", slot buffers and the commission grace window.
    LOCAL_TIMEZONE = os.environ.get("LOCAL_TIMEZONE", "Asia/Dhaka")

    SUPER_ADMIN_PHONE = os.environ.get("SUPER_ADMIN_PHONE", "01940308516")
    SUPER_ADMIN_PIN = os.environ.get("SUPER_ADMIN_PIN", "1234")

    REMINDER_SWEEP_ENABLED = _env_flag("REMINDER_SWEEP_ENABLED")
    REMINDER_SWEEP_INTERVAL_SECONDS = int(os.environ.get("REMINDER_SWEEP_INTERVAL_SECONDS", 60))

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret"
    LOCAL_TIMEZONE = "UTC"
    REMINDER_SWEEP_ENABLED = False
