from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...core.enums import AttendanceStatus, CheckInMethod
from ...core.exceptions import ProximityNotDetected, ValidationError
from ...sessions.model import Session
from .base import CheckInDecision, CheckInStrategy


class ProximitySignal(Protocol):
    """Upstream beacon detector: is the student physically present?"""

    def is_present(self, *, session_id: int, student_id: int) -> bool:
        raise NotImplementedError


class BeaconStrategy(CheckInStrategy):
    """Proximity is strong evidence: verified immediately, no reviewer."""

    method = CheckInMethod.BEACON

    def __init__(self, proximity: Optional[ProximitySignal] = None):
        self._proximity = proximity

    def check_proof(self, *, session: Session, student_id: int, proof_payload: Optional[str], now: datetime) -> None:
        if not session.beacon_enabled:
            raise ValidationError(f"Beacon check-in is disabled for session {session.session_id}")
        if self._proximity is None:
            raise ProximityNotDetected("No proximity signal is configured for beacon check-ins")
        if not self._proximity.is_present(session_id=session.session_id, student_id=student_id):
            raise ProximityNotDetected(f"Student {student_id} was not detected near session {session.session_id}")

    def decide(self, *, now: datetime, submitted_by: Optional[int]) -> CheckInDecision:
        return CheckInDecision(method=self.method, status=AttendanceStatus.VERIFIED, check_in_time=now)
