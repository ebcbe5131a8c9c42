from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import StudentDirectory


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["user_id"]),
        full_name=r["full_name"],
        student_number=r.get("student_number"),
        email=r.get("email"),
    )


class MySQLStudentDirectory(StudentDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_student(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, student_number, email
                FROM users
                WHERE user_id=%s AND role=%s
                """,
                (int(student_id), Role.STUDENT.value),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_course_roster(self, course_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.student_number, u.email
                FROM course_enrollments ce
                JOIN users u ON u.user_id = ce.student_id
                WHERE ce.course_id=%s
                ORDER BY u.full_name ASC, u.user_id ASC
                """,
                (int(course_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]
