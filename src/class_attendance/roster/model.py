from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod


@dataclass(frozen=True)
class Student:
    student_id: int
    full_name: str
    student_number: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class RosterRow:
    """One student's line in a session roster."""

    student_id: int
    full_name: str
    student_number: Optional[str]
    method: CheckInMethod
    check_in_time: Optional[datetime]
    status: AttendanceStatus


@dataclass(frozen=True)
class RosterSummary:
    """Read-model for a session: per-student rows plus the three tallies."""

    rows: tuple[RosterRow, ...]
    verified: int
    pending: int
    absent: int

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def attendance_rate(self) -> float:
        return round(self.verified / self.total, 4) if self.total else 0.0
