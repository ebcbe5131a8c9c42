from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's outcome for one session.

    At most one record exists per (session, student). ``recorded_at`` is the
    caller-visible time of the last intake write and orders competing writes.
    """

    session_id: int
    student_id: int
    method: CheckInMethod
    status: AttendanceStatus
    check_in_time: Optional[datetime]
    recorded_at: datetime
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    record_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.status == AttendanceStatus.PENDING:
            if self.method != CheckInMethod.SCANNED_CODE:
                raise ValidationError("Only scanned-code check-ins can be pending")
            if self.reviewer_id is not None or self.reviewed_at is not None or self.review_notes is not None:
                raise ValidationError("A pending check-in cannot carry a reviewer")

    @property
    def is_pending(self) -> bool:
        return self.status == AttendanceStatus.PENDING

    def supersedes(self, existing: Optional["AttendanceRecord"]) -> bool:
        """Whether this write replaces ``existing`` for the same (session, student).

        Manual entries always replace automatic ones and are never replaced
        by them; otherwise the later ``recorded_at`` wins (ties go to the
        incoming write).
        """

        if existing is None:
            return True
        manual_in = self.method == CheckInMethod.MANUAL
        manual_stored = existing.method == CheckInMethod.MANUAL
        if manual_in != manual_stored:
            return manual_in
        return self.recorded_at >= existing.recorded_at
