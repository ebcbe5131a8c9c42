from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus, CheckInMethod
from ...sessions.model import Session


@dataclass(frozen=True)
class CheckInDecision:
    method: CheckInMethod
    status: AttendanceStatus
    check_in_time: Optional[datetime]
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None


class CheckInStrategy(ABC):
    """Strategy Pattern: how one check-in method is validated and what it records."""

    method: CheckInMethod
    requires_open_window: bool = True

    def check_proof(
        self,
        *,
        session: Session,
        student_id: int,
        proof_payload: Optional[str],
        now: datetime,
    ) -> None:
        """Raise if the evidence for this method is not acceptable."""

    @abstractmethod
    def decide(self, *, now: datetime, submitted_by: Optional[int]) -> CheckInDecision:
        raise NotImplementedError
