from __future__ import annotations

from enum import Enum
from typing import TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_positive_id(value, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid identifier")
    if parsed <= 0:
        raise ValidationError(f"{field_name} is not a valid identifier")
    return parsed


def require_enum(enum_cls: type[E], value, field_name: str) -> E:
    """Accept an enum member, its value, or its name (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    key = str(value or "").strip().lower()
    for member in enum_cls:
        if key in (str(member.value).lower(), member.name.lower()):
            return member
    raise ValidationError(f"{field_name} has an unsupported value: {value!r}")
