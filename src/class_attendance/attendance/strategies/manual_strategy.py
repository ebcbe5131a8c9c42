from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus, CheckInMethod
from ...core.exceptions import ValidationError
from .base import CheckInDecision, CheckInStrategy


def _require_instructor(submitted_by: Optional[int]) -> int:
    if not submitted_by or int(submitted_by) <= 0:
        raise ValidationError("Manual attendance needs the submitting instructor")
    return int(submitted_by)


class ManualStrategy(CheckInStrategy):
    """Instructor override: final immediately, the instructor is the reviewer."""

    method = CheckInMethod.MANUAL

    def decide(self, *, now: datetime, submitted_by: Optional[int]) -> CheckInDecision:
        return CheckInDecision(
            method=self.method,
            status=AttendanceStatus.VERIFIED,
            check_in_time=now,
            reviewer_id=_require_instructor(submitted_by),
            reviewed_at=now,
        )


class ManualAbsentStrategy(CheckInStrategy):
    """Instructor marks a student absent; allowed after the window closed."""

    method = CheckInMethod.MANUAL
    requires_open_window = False

    def decide(self, *, now: datetime, submitted_by: Optional[int]) -> CheckInDecision:
        return CheckInDecision(
            method=self.method,
            status=AttendanceStatus.ABSENT,
            check_in_time=None,
            reviewer_id=_require_instructor(submitted_by),
            reviewed_at=now,
        )
