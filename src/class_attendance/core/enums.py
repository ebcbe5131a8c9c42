from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles supplied by the identity provider."""

    STUDENT = "student"
    LECTURER = "lecturer"
    HEAD_LECTURER = "head_lecturer"
    ADMIN = "admin"
    SYSTEM_ADMIN = "system_admin"


class CheckInMethod(str, Enum):
    """How a check-in was produced. ABSENT marks a rejected scan."""

    BEACON = "BEACON"
    SCANNED_CODE = "QR"
    MANUAL = "MANUAL"
    ABSENT = "ABSENT"


class AttendanceStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    ABSENT = "ABSENT"


class RequestStatus(str, Enum):
    """Approval life cycle shared by every approval-gated entity."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalKind(str, Enum):
    COURSE_ENROLLMENT = "course_enrollment"
    SCHOOL_MEMBERSHIP = "school_membership"
    ACCOUNT_ACTIVATION = "account_activation"
    ATTENDANCE = "attendance"
