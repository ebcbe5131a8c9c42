from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_utc, now_utc
from ..common.validators import require_enum, require_positive_id
from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import StateConflict, UnknownSession, UnknownStudent, WindowClosed
from ..roster.repository import StudentDirectory
from ..sessions.model import Session
from ..sessions.repository import SessionRepository
from .factory import CheckInStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .strategies.base import CheckInStrategy

logger = logging.getLogger(__name__)


class CheckInIntake:
    def __init__(
        self,
        attendance: AttendanceRepository,
        sessions: SessionRepository,
        students: StudentDirectory,
        *,
        strategy_factory: CheckInStrategyFactory,
    ):
        self._attendance = attendance
        self._sessions = sessions
        self._students = students
        self._factory = strategy_factory

    def _load(self, session_id, student_id) -> tuple[Session, int]:
        session_id = require_positive_id(session_id, "session_id")
        student_id = require_positive_id(student_id, "student_id")

        session = self._sessions.get_by_id(session_id)
        if not session:
            raise UnknownSession(f"Session {session_id} does not exist")
        if not self._students.get_student(student_id):
            raise UnknownStudent(f"Student {student_id} does not exist")
        return session, student_id

    def submit(
        self,
        session_id: int,
        student_id: int,
        method: CheckInMethod | str,
        proof_payload: Optional[str] = None,
        *,
        submitted_by: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Record a check-in attempt; a repeat for the same student updates the one record."""
        now = ensure_utc(now or now_utc())
        method = require_enum(CheckInMethod, method, "method")
        strategy = self._factory.for_method(method)
        session, student_id = self._load(session_id, student_id)

        try:
            # Proof first: an expired code reports TokenExpired even once the window lapsed.
            strategy.check_proof(session=session, student_id=student_id, proof_payload=proof_payload, now=now)
            if not session.is_window_active(now):
                raise WindowClosed(f"Check-in window of session {session.session_id} is closed")
        except StateConflict as exc:
            logger.info(
                "check-in rejected: session=%s student=%s method=%s reason=%s",
                session.session_id, student_id, method.value, type(exc).__name__,
            )
            raise

        return self._store(session, student_id, strategy, submitted_by=submitted_by, now=now)

    def mark_absent(
        self,
        session_id: int,
        student_id: int,
        *,
        instructor_id: int,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = ensure_utc(now or now_utc())
        session, student_id = self._load(session_id, student_id)
        strategy = self._factory.for_absence()
        return self._store(session, student_id, strategy, submitted_by=instructor_id, now=now)

    def _store(
        self,
        session: Session,
        student_id: int,
        strategy: CheckInStrategy,
        *,
        submitted_by: Optional[int],
        now: datetime,
    ) -> AttendanceRecord:
        decision = strategy.decide(now=now, submitted_by=submitted_by)
        record = AttendanceRecord(
            session_id=session.session_id,
            student_id=student_id,
            method=decision.method,
            status=decision.status,
            check_in_time=decision.check_in_time,
            recorded_at=now,
            reviewer_id=decision.reviewer_id,
            reviewed_at=decision.reviewed_at,
        )

        stored = self._attendance.save_checkin(
            record=record,
            require_window_open_at=now if strategy.requires_open_window else None,
        )
        if stored is None:
            # Window closed between the read and the write.
            raise WindowClosed(f"Check-in window of session {session.session_id} is closed")

        if stored.recorded_at != record.recorded_at or stored.method != record.method:
            logger.info(
                "check-in superseded: session=%s student=%s kept=%s/%s",
                session.session_id, student_id, stored.method.value, stored.status.value,
            )
        else:
            logger.info(
                "check-in accepted: session=%s student=%s method=%s status=%s",
                session.session_id, student_id, stored.method.value, stored.status.value,
            )
        return stored

    def get_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_student(
            require_positive_id(session_id, "session_id"),
            require_positive_id(student_id, "student_id"),
        )

    def list_pending(self, session_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_session(
            require_positive_id(session_id, "session_id"),
            status=AttendanceStatus.PENDING,
        )
