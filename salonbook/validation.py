"""Type checks for JSON request fields."""
from __future__ import annotations

from .errors import InvalidPayload


def text_value(value: object, field: str, required: bool = False) -> str:
    """Return ``value`` stripped; ``None`` counts as empty."""
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise InvalidPayload(f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise InvalidPayload(f"{field} is required")
    return value


def optional_text(value: object, field: str) -> str | None:
    return text_value(value, field) or None

