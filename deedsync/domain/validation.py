from __future__ import annotations

from typing import Any

from .entities import U64_MAX
from .errors import InvalidInput


def require_text(value: Any, field: str, *, label: str) -> str:
    """Return ``value`` stripped, raising InvalidInput when it is empty."""
    if value is None or isinstance(value, bool):
        raise InvalidInput(field, f"{label} is required.")
    text = str(value).strip()
    if not text:
        raise InvalidInput(field, f"{label} is required.")
    return text


def parse_u64(value: Any, field: str, *, label: str) -> int:
    """
    Parse a non-negative 64-bit unsigned integer from form input.

    Accepts ints and decimal digit strings (surrounding whitespace ignored).
    Floats, signs, and anything above 2**64 - 1 are rejected.
    """
    if isinstance(value, bool):
        raise InvalidInput(field, f"{label} must be a whole number.")
    if isinstance(value, int):
        number = value
    else:
        text = str(value if value is not None else "").strip()
        if not text:
            raise InvalidInput(field, f"{label} is required.")
        if not (text.isascii() and text.isdigit()):
            raise InvalidInput(field, f"{label} must be a non-negative whole number.")
        number = int(text)
    if number < 0:
        raise InvalidInput(field, f"{label} must be a non-negative whole number.")
    if number > U64_MAX:
        raise InvalidInput(field, f"{label} exceeds the maximum of {U64_MAX}.")
    return number


__all__ = ["parse_u64", "require_text"]
