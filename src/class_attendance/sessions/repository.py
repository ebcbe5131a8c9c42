from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Course, Session


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_course(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def create(
        self,
        *,
        course_id: int,
        instructor_id: int,
        starts_at: datetime,
        ends_at: Optional[datetime],
        location: Optional[str],
        beacon_enabled: bool,
    ) -> int:
        raise NotImplementedError

    def list_open_windows(self) -> Sequence[Session]:
        raise NotImplementedError

    def open_window(self, *, session_id: int, expires_at: datetime, duration_seconds: int, now: datetime) -> bool:
        """Compare-and-set: succeed only if the window is closed or already past its expiry."""

        raise NotImplementedError

    def refresh_window(self, *, session_id: int, expires_at: datetime) -> bool:
        """Compare-and-set: succeed only while the window flag is still open."""

        raise NotImplementedError

    def close_window(self, *, session_id: int) -> bool:
        raise NotImplementedError

    def close_window_if_expired(self, *, session_id: int, now: datetime) -> bool:
        raise NotImplementedError

    def end_session(self, *, session_id: int, ended_at: datetime) -> bool:
        raise NotImplementedError
