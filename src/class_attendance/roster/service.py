from __future__ import annotations

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import to_iso
from ..common.validators import require_positive_id
from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import UnknownSession
from ..sessions.repository import SessionRepository
from .model import RosterSummary
from .projection import project_roster
from .repository import StudentDirectory


class RosterService:
    def __init__(self, sessions: SessionRepository, attendance: AttendanceRepository, students: StudentDirectory):
        self._sessions = sessions
        self._attendance = attendance
        self._students = students

    def session_roster(self, session_id: int) -> RosterSummary:
        session = self._sessions.get_by_id(require_positive_id(session_id, "session_id"))
        if not session:
            raise UnknownSession(f"Session {session_id} does not exist")

        records = self._attendance.list_for_session(session.session_id)
        roster = self._students.list_course_roster(session.course_id)
        return project_roster(records, roster)

    def session_roster_ui(self, session_id: int) -> dict:
        summary = self.session_roster(session_id)
        return {
            "rows": [self._to_ui(r) for r in summary.rows],
            "counts": {
                "verified": summary.verified,
                "pending": summary.pending,
                "absent": summary.absent,
                "total": summary.total,
            },
            "attendance_rate": summary.attendance_rate,
        }

    def _to_ui(self, r) -> dict:
        label = {
            AttendanceStatus.VERIFIED: "Verified",
            AttendanceStatus.PENDING: "Pending",
            AttendanceStatus.ABSENT: "Absent",
        }.get(r.status, r.status.value)

        css = {
            AttendanceStatus.VERIFIED: "bg-success",
            AttendanceStatus.PENDING: "bg-warning text-dark",
            AttendanceStatus.ABSENT: "bg-secondary",
        }.get(r.status, "bg-secondary")

        method = {
            CheckInMethod.BEACON: "BLE",
            CheckInMethod.SCANNED_CODE: "QR",
            CheckInMethod.MANUAL: "Manual",
            CheckInMethod.ABSENT: "Absent",
        }.get(r.method, r.method.value)

        return {
            "student_id": r.student_id,
            "name": r.full_name,
            "student_number": r.student_number or "-",
            "method": method,
            "check_in_time": to_iso(r.check_in_time),
            "status": r.status.value,
            "status_label": label,
            "css_class": css,
        }
