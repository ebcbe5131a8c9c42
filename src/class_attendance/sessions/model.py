from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Course:
    course_id: int
    code: str
    name: str
    instructor_id: Optional[int] = None
    school_id: Optional[int] = None


@dataclass(frozen=True)
class Session:
    """One scheduled class meeting and the state of its check-in window.

    ``window_expires_at`` is set if and only if ``check_in_window_open``.
    """

    session_id: int
    course_id: int
    instructor_id: int
    starts_at: datetime
    ends_at: Optional[datetime]
    location: Optional[str] = None
    beacon_enabled: bool = True
    check_in_window_open: bool = False
    window_expires_at: Optional[datetime] = None
    window_duration_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if self.check_in_window_open != (self.window_expires_at is not None):
            raise ValidationError("An open window must have an expiry and a closed one must not")

    def is_window_active(self, now: datetime) -> bool:
        return bool(self.check_in_window_open and self.window_expires_at and now < self.window_expires_at)

    def as_of(self, now: datetime) -> "Session":
        """This session with a lapsed window reported as closed."""
        if self.check_in_window_open and not self.is_window_active(now):
            return replace(self, check_in_window_open=False, window_expires_at=None)
        return self
