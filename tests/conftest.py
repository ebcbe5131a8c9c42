from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from class_attendance.approvals.effects import enroll_student
from class_attendance.approvals.gates.attendance_gate import AttendanceGate
from class_attendance.approvals.gates.request_gate import RequestGate
from class_attendance.approvals.service import ApprovalEngine
from class_attendance.attendance.factory import CheckInStrategyFactory
from class_attendance.attendance.service import CheckInIntake
from class_attendance.core.enums import ApprovalKind
from class_attendance.roster.model import Student
from class_attendance.roster.service import RosterService
from class_attendance.sessions.model import Course, Session
from class_attendance.sessions.service import SessionWindowManager
from class_attendance.tokens.codec import TokenCodec

from tests.fakes import (
    COURSE_ID,
    INSTRUCTOR_ID,
    OTHER_SESSION_ID,
    SESSION_ID,
    SIGNING_KEY,
    FakeProximity,
    InMemoryAttendance,
    InMemoryRequests,
    InMemorySessions,
    InMemoryStudents,
    RecordingEnrollments,
    RecordingNotifier,
)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 3, 9, 0, 0, tzinfo=timezone.utc)


@dataclass
class World:
    now: datetime
    sessions: InMemorySessions
    attendance: InMemoryAttendance
    students: InMemoryStudents
    enrollment_requests: InMemoryRequests
    enrollments: RecordingEnrollments
    notifier: RecordingNotifier
    proximity: FakeProximity
    codec: TokenCodec
    manager: SessionWindowManager
    intake: CheckInIntake
    engine: ApprovalEngine
    roster: RosterService


@pytest.fixture
def world(fixed_now) -> World:
    sessions = InMemorySessions()
    sessions.add_course(Course(course_id=COURSE_ID, code="CS101", name="Intro to Programming", instructor_id=INSTRUCTOR_ID))
    for session_id in (SESSION_ID, OTHER_SESSION_ID):
        sessions.add_session(
            Session(
                session_id=session_id,
                course_id=COURSE_ID,
                instructor_id=INSTRUCTOR_ID,
                starts_at=fixed_now,
                ends_at=fixed_now + timedelta(hours=2),
                location="Room 1",
            )
        )

    students = InMemoryStudents()
    students.add(Student(student_id=1, full_name="Ada Lovelace", student_number="S001"), course_id=COURSE_ID)
    students.add(Student(student_id=2, full_name="Alan Turing", student_number="S002"), course_id=COURSE_ID)
    students.add(Student(student_id=3, full_name="Grace Hopper", student_number="S003"), course_id=COURSE_ID)

    attendance = InMemoryAttendance(sessions)
    enrollment_requests = InMemoryRequests(ApprovalKind.COURSE_ENROLLMENT)
    enrollments = RecordingEnrollments()
    notifier = RecordingNotifier()
    proximity = FakeProximity()

    codec = TokenCodec(SIGNING_KEY)
    manager = SessionWindowManager(sessions, codec, default_duration=timedelta(minutes=5))
    intake = CheckInIntake(
        attendance,
        sessions,
        students,
        strategy_factory=CheckInStrategyFactory(codec, proximity),
    )
    engine = ApprovalEngine(
        [
            RequestGate(
                ApprovalKind.COURSE_ENROLLMENT,
                enrollment_requests,
                on_approved=enroll_student(enrollments),
                notifier=notifier,
            ),
            AttendanceGate(attendance),
        ]
    )

    return World(
        now=fixed_now,
        sessions=sessions,
        attendance=attendance,
        students=students,
        enrollment_requests=enrollment_requests,
        enrollments=enrollments,
        notifier=notifier,
        proximity=proximity,
        codec=codec,
        manager=manager,
        intake=intake,
        engine=engine,
        roster=RosterService(sessions, attendance, students),
    )
