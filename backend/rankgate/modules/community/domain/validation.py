"""Argument checks shared by the community aggregates."""

from typing import Any

from rankgate.modules.community.domain.errors import InvalidArgumentError


def require_text(value: Any, field: str) -> str:
    """Return ``value`` unchanged if it is a string with non-whitespace content."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(field, "cannot be empty")
    return value


def require_int(value: Any, field: str, minimum: int | None = None) -> int:
    """Return ``value`` if it is an int (not bool) no smaller than ``minimum``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(field, "must be an integer", value)
    if minimum is not None and value < minimum:
        raise InvalidArgumentError(field, f"must be at least {minimum}", value)
    return value
