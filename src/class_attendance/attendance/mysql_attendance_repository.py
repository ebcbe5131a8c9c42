from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = """
    record_id, session_id, student_id, method, status, check_in_time, recorded_at,
    reviewer_id, reviewed_at, review_notes
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        method=CheckInMethod(r["method"]),
        status=AttendanceStatus(r["status"]),
        check_in_time=from_db_datetime(r.get("check_in_time")),
        recorded_at=from_db_datetime(r["recorded_at"]),
        reviewer_id=r.get("reviewer_id"),
        reviewed_at=from_db_datetime(r.get("reviewed_at")),
        review_notes=r.get("review_notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s",
                (int(record_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_student(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s AND student_id=%s",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_session(
        self,
        session_id: int,
        *,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["session_id=%s"]
        params: list[object] = [int(session_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY recorded_at ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_pending(self, *, limit: int = 200) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE status=%s
                ORDER BY recorded_at ASC
                LIMIT %s
                """,
                (AttendanceStatus.PENDING.value, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_by_status(self) -> Mapping[AttendanceStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM attendance_records GROUP BY status")
            counts = {status: 0 for status in AttendanceStatus}
            for r in fetchall(cur):
                counts[AttendanceStatus(r["status"])] = int(r["n"])
            return counts

    def save_checkin(
        self,
        *,
        record: AttendanceRecord,
        require_window_open_at: Optional[datetime],
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock the session row: window check and upsert see one state.
            cur.execute(
                """
                SELECT check_in_window_open, window_expires_at
                FROM class_sessions
                WHERE session_id=%s
                FOR UPDATE
                """,
                (int(record.session_id),),
            )
            s = fetchone(cur)
            if not s:
                return None
            if require_window_open_at is not None:
                expires_at = from_db_datetime(s.get("window_expires_at"))
                if not (s.get("check_in_window_open") and expires_at and require_window_open_at < expires_at):
                    return None

            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s AND student_id=%s
                FOR UPDATE
                """,
                (int(record.session_id), int(record.student_id)),
            )
            r = fetchone(cur)
            existing = _to_record(r) if r else None
            if existing and not record.supersedes(existing):
                return existing

            values = (
                record.method.value,
                record.status.value,
                to_db_datetime(record.check_in_time),
                to_db_datetime(record.recorded_at),
                record.reviewer_id,
                to_db_datetime(record.reviewed_at),
                record.review_notes,
            )
            if existing:
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET method=%s, status=%s, check_in_time=%s, recorded_at=%s, reviewer_id=%s, reviewed_at=%s,
                        review_notes=%s
                    WHERE record_id=%s
                    """,
                    values + (existing.record_id,),
                )
                return replace(record, record_id=existing.record_id)

            cur.execute(
                """
                INSERT INTO attendance_records(
                    session_id, student_id, method, status, check_in_time, recorded_at, reviewer_id, reviewed_at,
                    review_notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(record.session_id), int(record.student_id)) + values,
            )
            return replace(record, record_id=int(cur.lastrowid))

    def decide_pending(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        method: CheckInMethod,
        check_in_time: Optional[datetime],
        reviewer_id: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, method=%s, check_in_time=%s, reviewer_id=%s, reviewed_at=%s, review_notes=%s
                WHERE record_id=%s AND status=%s
                """,
                (
                    status.value,
                    method.value,
                    to_db_datetime(check_in_time),
                    int(reviewer_id),
                    to_db_datetime(reviewed_at),
                    review_notes,
                    int(record_id),
                    AttendanceStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0
