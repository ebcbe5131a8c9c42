from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol

from .model import ApprovalRequest


class EnrollmentWriter(Protocol):
    def enroll(self, *, student_id: int, course_id: int) -> bool:
        """Add the student to the course roster if absent. Returns True if inserted."""

        raise NotImplementedError


class MembershipWriter(Protocol):
    def add_member(self, *, user_id: int, school_id: int) -> None:
        raise NotImplementedError


class AccountActivator(Protocol):
    def activate(self, *, account_id: int) -> None:
        raise NotImplementedError


class Notifier(Protocol):
    def notify(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        notification_type: str,
        created_at: datetime,
    ) -> None:
        raise NotImplementedError


def enroll_student(writer: EnrollmentWriter) -> Callable[[ApprovalRequest], None]:
    def apply(request: ApprovalRequest) -> None:
        writer.enroll(student_id=request.subject_id, course_id=request.target_id)

    return apply


def join_school(writer: MembershipWriter) -> Callable[[ApprovalRequest], None]:
    def apply(request: ApprovalRequest) -> None:
        writer.add_member(user_id=request.subject_id, school_id=request.target_id)

    return apply


def activate_account(activator: AccountActivator) -> Callable[[ApprovalRequest], None]:
    def apply(request: ApprovalRequest) -> None:
        activator.activate(account_id=request.target_id)

    return apply
