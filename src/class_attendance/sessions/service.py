from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import ensure_utc, now_utc
from ..common.validators import require_positive_id
from ..core.constants import DEFAULT_WINDOW_MINUTES
from ..core.exceptions import UnknownSession, ValidationError, WindowAlreadyOpen, WindowClosed
from ..tokens.codec import TokenCodec
from ..tokens.model import VerificationToken
from .model import Course, Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)


class SessionWindowManager:
    """Owns the open/closed state of each session's check-in window.

    Closed -> Open (open_window), Open -> Open (refresh, new token),
    Open -> Closed (close_window, or close_expired once the expiry passes).
    """

    def __init__(
        self,
        sessions: SessionRepository,
        codec: TokenCodec,
        *,
        default_duration: timedelta = timedelta(minutes=DEFAULT_WINDOW_MINUTES),
    ):
        self._sessions = sessions
        self._codec = codec
        self._default_duration = default_duration

    def _load(self, session_id: int) -> Session:
        session = self._sessions.get_by_id(require_positive_id(session_id, "session_id"))
        if not session:
            raise UnknownSession(f"Session {session_id} does not exist")
        return session

    def get_session(self, session_id: int, *, now: Optional[datetime] = None) -> Session:
        """The session as callers see it: a window past its expiry reads as closed."""
        return self._load(session_id).as_of(ensure_utc(now or now_utc()))

    def open_windows(self) -> list[Session]:
        return list(self._sessions.list_open_windows())

    def _get_course(self, session: Session) -> Course:
        course = self._sessions.get_course(session.course_id)
        if not course:
            raise UnknownSession(f"Course {session.course_id} of session {session.session_id} does not exist")
        return course

    def create_session(
        self,
        *,
        course_id: int,
        instructor_id: int,
        starts_at: datetime,
        ends_at: Optional[datetime] = None,
        location: Optional[str] = None,
        beacon_enabled: bool = True,
    ) -> Session:
        course_id = require_positive_id(course_id, "course_id")
        instructor_id = require_positive_id(instructor_id, "instructor_id")
        if not self._sessions.get_course(course_id):
            raise ValidationError(f"Course {course_id} does not exist")
        starts_at = ensure_utc(starts_at)
        ends_at = ensure_utc(ends_at) if ends_at else None
        if ends_at and ends_at <= starts_at:
            raise ValidationError("Session must end after it starts")

        session_id = self._sessions.create(
            course_id=course_id,
            instructor_id=instructor_id,
            starts_at=starts_at,
            ends_at=ends_at,
            location=(location or "").strip() or None,
            beacon_enabled=bool(beacon_enabled),
        )
        logger.info("session created: session=%s course=%s", session_id, course_id)
        return self._load(session_id)

    def _duration(self, duration: Optional[timedelta]) -> timedelta:
        duration = duration if duration is not None else self._default_duration
        if duration.total_seconds() < 1:
            raise ValidationError("Window duration must be positive")
        return timedelta(seconds=int(duration.total_seconds()))

    def open_window(
        self,
        session_id: int,
        duration: Optional[timedelta] = None,
        *,
        now: Optional[datetime] = None,
    ) -> VerificationToken:
        now = ensure_utc(now or now_utc()).replace(microsecond=0)
        duration = self._duration(duration)

        session = self._load(session_id)
        if session.is_window_active(now):
            raise WindowAlreadyOpen(f"Check-in window of session {session.session_id} is already open")

        course = self._get_course(session)
        expires_at = now + duration
        if not self._sessions.open_window(
            session_id=session.session_id,
            expires_at=expires_at,
            duration_seconds=int(duration.total_seconds()),
            now=now,
        ):
            raise WindowAlreadyOpen(f"Check-in window of session {session.session_id} is already open")

        logger.info("window opened: session=%s expires_at=%s", session.session_id, expires_at.isoformat())
        return self._codec.build(session, course, expires_at, issued_at=now)

    def refresh(self, session_id: int, *, now: Optional[datetime] = None) -> VerificationToken:
        """Mint a new token with a fresh expiry of the configured duration."""
        now = ensure_utc(now or now_utc()).replace(microsecond=0)

        session = self._load(session_id)
        if not session.check_in_window_open:
            raise WindowClosed(f"Check-in window of session {session.session_id} is closed")

        course = self._get_course(session)
        duration = timedelta(seconds=session.window_duration_seconds or int(self._default_duration.total_seconds()))
        expires_at = now + duration
        if not self._sessions.refresh_window(session_id=session.session_id, expires_at=expires_at):
            raise WindowClosed(f"Check-in window of session {session.session_id} is closed")

        logger.info("window refreshed: session=%s expires_at=%s", session.session_id, expires_at.isoformat())
        return self._codec.build(session, course, expires_at, issued_at=now)

    def close_window(self, session_id: int) -> Session:
        session = self._load(session_id)
        if self._sessions.close_window(session_id=session.session_id):
            logger.info("window closed: session=%s", session.session_id)
        return self.get_session(session.session_id)

    def rotate(
        self,
        session_id: int,
        *,
        auto_refresh: bool,
        now: Optional[datetime] = None,
    ) -> Optional[VerificationToken]:
        """Act on a window whose token just expired.

        Refreshes it while auto-refresh is on and the session has not reached
        its scheduled end; otherwise closes it. Returns the new token, if any.
        """
        now = ensure_utc(now or now_utc())
        session = self._load(session_id)
        past_end = session.ends_at is not None and now >= session.ends_at
        if auto_refresh and not past_end:
            return self.refresh(session.session_id, now=now)
        if self._sessions.close_window_if_expired(session_id=session.session_id, now=now):
            logger.info("window expired: session=%s", session.session_id)
        return None

    def close_expired(self, *, now: Optional[datetime] = None) -> list[int]:
        """Close every open window whose expiry has passed. Returns the closed session ids."""
        now = ensure_utc(now or now_utc())
        closed: list[int] = []
        for session in self._sessions.list_open_windows():
            if session.window_expires_at and session.window_expires_at <= now:
                if self._sessions.close_window_if_expired(session_id=session.session_id, now=now):
                    closed.append(session.session_id)
        if closed:
            logger.info("windows expired: sessions=%s", closed)
        return closed

    def end_session(self, session_id: int, *, now: Optional[datetime] = None) -> Session:
        now = ensure_utc(now or now_utc())
        session = self._load(session_id)
        self._sessions.end_session(session_id=session.session_id, ended_at=now)
        logger.info("session ended: session=%s", session.session_id)
        return self.get_session(session.session_id)

    def current_token(self, session_id: int, *, now: Optional[datetime] = None) -> VerificationToken:
        """Rebuild the token of the active window (same claims, same payload)."""
        now = ensure_utc(now or now_utc())
        session = self._load(session_id)
        if not session.is_window_active(now):
            raise WindowClosed(f"Check-in window of session {session.session_id} is closed")

        course = self._get_course(session)
        duration = timedelta(seconds=session.window_duration_seconds or int(self._default_duration.total_seconds()))
        return self._codec.build(
            session,
            course,
            session.window_expires_at,
            issued_at=session.window_expires_at - duration,
        )

    def payload_for(self, token: VerificationToken) -> str:
        return self._codec.dump(token)
