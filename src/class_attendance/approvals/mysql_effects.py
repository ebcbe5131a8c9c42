from __future__ import annotations

from datetime import datetime

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, to_db_datetime
from .effects import AccountActivator, EnrollmentWriter, MembershipWriter, Notifier


class MySQLEnrollmentWriter(EnrollmentWriter):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def enroll(self, *, student_id: int, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO course_enrollments(student_id, course_id) VALUES(%s,%s)",
                (int(student_id), int(course_id)),
            )
            return cur.rowcount > 0


class MySQLMembershipWriter(MembershipWriter):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add_member(self, *, user_id: int, school_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET school_id=%s WHERE user_id=%s", (int(school_id), int(user_id)))


class MySQLAccountActivator(AccountActivator):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def activate(self, *, account_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=1 WHERE user_id=%s", (int(account_id),))


class MySQLNotifier(Notifier):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        notification_type: str,
        created_at: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, title, message, type, is_read, created_at)
                VALUES(%s,%s,%s,%s,0,%s)
                """,
                (int(user_id), title, message, notification_type, to_db_datetime(created_at)),
            )
