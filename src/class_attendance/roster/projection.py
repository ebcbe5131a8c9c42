from __future__ import annotations

from typing import Iterable, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus, CheckInMethod
from .model import RosterRow, RosterSummary, Student


def project_roster(records: Iterable[AttendanceRecord], roster: Sequence[Student]) -> RosterSummary:
    """Turn a session's records and the course roster into display rows and tallies.

    Pure and recomputable: students with no record count as absent, and
    records for students outside the roster are ignored, so the three counts
    always sum to ``len(roster)``.
    """

    latest: dict[int, AttendanceRecord] = {}
    for rec in records:
        current = latest.get(rec.student_id)
        if current is None or rec.recorded_at >= current.recorded_at:
            latest[rec.student_id] = rec

    rows: list[RosterRow] = []
    counts = {status: 0 for status in AttendanceStatus}
    for student in roster:
        rec = latest.get(student.student_id)
        if rec is None:
            row = RosterRow(
                student_id=student.student_id,
                full_name=student.full_name,
                student_number=student.student_number,
                method=CheckInMethod.ABSENT,
                check_in_time=None,
                status=AttendanceStatus.ABSENT,
            )
        else:
            row = RosterRow(
                student_id=student.student_id,
                full_name=student.full_name,
                student_number=student.student_number,
                method=rec.method,
                check_in_time=rec.check_in_time,
                status=rec.status,
            )
        counts[row.status] += 1
        rows.append(row)

    return RosterSummary(
        rows=tuple(rows),
        verified=counts[AttendanceStatus.VERIFIED],
        pending=counts[AttendanceStatus.PENDING],
        absent=counts[AttendanceStatus.ABSENT],
    )
