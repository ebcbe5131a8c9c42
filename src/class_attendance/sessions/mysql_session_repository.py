from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import Course, Session
from .repository import SessionRepository

_SESSION_COLUMNS = """
    session_id, course_id, instructor_id, starts_at, ends_at, location, beacon_enabled,
    check_in_window_open, window_expires_at, window_duration_seconds
"""


def _to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        course_id=int(r["course_id"]),
        instructor_id=int(r["instructor_id"]),
        starts_at=from_db_datetime(r["starts_at"]),
        ends_at=from_db_datetime(r.get("ends_at")),
        location=r.get("location"),
        beacon_enabled=bool(r.get("beacon_enabled")),
        check_in_window_open=bool(r.get("check_in_window_open")),
        window_expires_at=from_db_datetime(r.get("window_expires_at")),
        window_duration_seconds=r.get("window_duration_seconds"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM class_sessions WHERE session_id=%s",
                (int(session_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_course(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT course_id, code, name, instructor_id, school_id
                FROM courses
                WHERE course_id=%s
                """,
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Course(
                course_id=int(r["course_id"]),
                code=r["code"],
                name=r["name"],
                instructor_id=r.get("instructor_id"),
                school_id=r.get("school_id"),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_sessions(course_id, instructor_id, starts_at, ends_at, location, beacon_enabled)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(course_id),
                    int(instructor_id),
                    to_db_datetime(starts_at),
                    to_db_datetime(ends_at),
                    location,
                    int(bool(beacon_enabled)),
                ),
            )
            return int(cur.lastrowid)

    def list_open_windows(self) -> Sequence[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM class_sessions WHERE check_in_window_open=1")
            return [_to_session(r) for r in fetchall(cur)]

    def open_window(self, *, session_id: int, expires_at: datetime, duration_seconds: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_sessions
                SET check_in_window_open=1, window_expires_at=%s, window_duration_seconds=%s
                WHERE session_id=%s
                  AND (check_in_window_open=0 OR window_expires_at <= %s)
                """,
                (to_db_datetime(expires_at), int(duration_seconds), int(session_id), to_db_datetime(now)),
            )
            return cur.rowcount > 0

    def refresh_window(self, *, session_id: int, expires_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_sessions
                SET window_expires_at=%s
                WHERE session_id=%s AND check_in_window_open=1
                """,
                (to_db_datetime(expires_at), int(session_id)),
            )
            return cur.rowcount > 0

    def close_window(self, *, session_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_sessions
                SET check_in_window_open=0, window_expires_at=NULL
                WHERE session_id=%s AND check_in_window_open=1
                """,
                (int(session_id),),
            )
            return cur.rowcount > 0

    def close_window_if_expired(self, *, session_id: int, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_sessions
                SET check_in_window_open=0, window_expires_at=NULL
                WHERE session_id=%s AND check_in_window_open=1 AND window_expires_at <= %s
                """,
                (int(session_id), to_db_datetime(now)),
            )
            return cur.rowcount > 0

    def end_session(self, *, session_id: int, ended_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_sessions
                SET ends_at=%s, check_in_window_open=0, window_expires_at=NULL
                WHERE session_id=%s
                """,
                (to_db_datetime(ended_at), int(session_id)),
            )
            return cur.rowcount > 0
