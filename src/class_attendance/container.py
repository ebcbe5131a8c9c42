from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .approvals.effects import activate_account, enroll_student, join_school
from .approvals.gates.attendance_gate import AttendanceGate
from .approvals.gates.request_gate import RequestGate
from .approvals.mysql_effects import (
    MySQLAccountActivator,
    MySQLEnrollmentWriter,
    MySQLMembershipWriter,
    MySQLNotifier,
)
from .approvals.mysql_request_repository import MySQLApprovalRequestRepository
from .approvals.service import ApprovalEngine
from .attendance.factory import CheckInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_proximity_signal import MySQLProximitySignal
from .attendance.service import CheckInIntake
from .core.constants import DEFAULT_WINDOW_MINUTES
from .core.enums import ApprovalKind
from .database.connection import DBConfig, DatabaseConnection
from .roster.mysql_student_directory import MySQLStudentDirectory
from .roster.service import RosterService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.scheduler import TokenRotationScheduler, log_published_token
from .sessions.service import SessionWindowManager
from .tokens.codec import TokenCodec


@dataclass(frozen=True)
class Container:
    codec: TokenCodec

    session_manager: SessionWindowManager
    checkin_intake: CheckInIntake
    approval_engine: ApprovalEngine
    roster_service: RosterService
    rotation: TokenRotationScheduler


def build_container(
    *,
    db_config: dict,
    signing_key: str,
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
    auto_refresh: bool = False,
    beacon_max_age_seconds: int = 0,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    sessions_repo = MySQLSessionRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    students = MySQLStudentDirectory(conn)
    notifier = MySQLNotifier(conn)

    # Without a detection feed there is no evidence for beacon check-ins.
    proximity = (
        MySQLProximitySignal(conn, max_age=timedelta(seconds=int(beacon_max_age_seconds)))
        if int(beacon_max_age_seconds) > 0
        else None
    )

    codec = TokenCodec(signing_key)
    session_manager = SessionWindowManager(
        sessions_repo,
        codec,
        default_duration=timedelta(minutes=int(window_minutes)),
    )
    checkin_intake = CheckInIntake(
        attendance_repo,
        sessions_repo,
        students,
        strategy_factory=CheckInStrategyFactory(codec, proximity),
    )
    approval_engine = ApprovalEngine(
        [
            RequestGate(
                ApprovalKind.COURSE_ENROLLMENT,
                MySQLApprovalRequestRepository(conn, ApprovalKind.COURSE_ENROLLMENT),
                on_approved=enroll_student(MySQLEnrollmentWriter(conn)),
                notifier=notifier,
            ),
            RequestGate(
                ApprovalKind.SCHOOL_MEMBERSHIP,
                MySQLApprovalRequestRepository(conn, ApprovalKind.SCHOOL_MEMBERSHIP),
                on_approved=join_school(MySQLMembershipWriter(conn)),
                notifier=notifier,
            ),
            RequestGate(
                ApprovalKind.ACCOUNT_ACTIVATION,
                MySQLApprovalRequestRepository(conn, ApprovalKind.ACCOUNT_ACTIVATION),
                on_approved=activate_account(MySQLAccountActivator(conn)),
                notifier=notifier,
            ),
            AttendanceGate(attendance_repo),
        ]
    )
    roster_service = RosterService(sessions_repo, attendance_repo, students)
    rotation = TokenRotationScheduler(
        session_manager,
        auto_refresh=auto_refresh,
        on_token=log_published_token,
    )

    return Container(
        codec=codec,
        session_manager=session_manager,
        checkin_intake=checkin_intake,
        approval_engine=approval_engine,
        roster_service=roster_service,
        rotation=rotation,
    )
