from __future__ import annotations

from typing import Any

from ..core.constants import MAX_STUDENT_ID_LENGTH
from ..core.enums import PresenceState
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def normalize_student_id(value: str) -> str:
    """Student ids are matched case-insensitively and stored upper-cased."""
    sid = require_non_empty(value, "Student ID").upper()
    if len(sid) > MAX_STUDENT_ID_LENGTH:
        raise ValidationError(f"Student ID cannot exceed {MAX_STUDENT_ID_LENGTH} characters")
    return sid


def require_action(value: Any) -> PresenceState:
    try:
        return PresenceState(str(value).strip().lower())
    except ValueError:
        raise ValidationError('Action must be either "in" or "out"') from None


def require_int_in_range(value: Any, field_name: str, *, minimum: int, maximum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if number < minimum or number > maximum:
        raise ValidationError(f"{field_name} must be between {minimum} and {maximum}")
    return number
