"""Flask helpers shared by the JSON controllers.

Caller identity (``user_id``, ``role``) is put in the Flask session by the
external identity provider; nothing here derives a role from user data.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .datetime_utils import parse_iso_datetime, to_iso

INSTRUCTOR_ROLES = (Role.LECTURER, Role.HEAD_LECTURER)
REVIEWER_ROLES = (Role.LECTURER, Role.HEAD_LECTURER, Role.ADMIN, Role.SYSTEM_ADMIN)


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Optional[Role]:
    try:
        return Role(session.get("role"))
    except ValueError:
        return None


def require_role(*roles: Role) -> None:
    if current_role() not in roles:
        raise AuthorizationError("You do not have permission for this action")


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "Unauthenticated", "message": "Please sign in"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapper(*args, **kwargs):
            require_role(*roles)
            return view(*args, **kwargs)

        return wrapper

    return decorator


instructor_required = roles_required(*INSTRUCTOR_ROLES)
reviewer_required = roles_required(*REVIEWER_ROLES)
student_required = roles_required(Role.STUDENT)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_datetime(data: dict, key: str) -> Optional[datetime]:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def jsonable(value: Any) -> Any:
    """Dataclasses, enums and datetimes to plain JSON values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    return value


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": jsonable(data)}), status
