from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus, CheckInMethod
from ...core.exceptions import MalformedPayload, TokenExpired, TokenMismatch
from ...sessions.model import Session
from ...tokens.codec import TokenCodec
from .base import CheckInDecision, CheckInStrategy


class ScannedCodeStrategy(CheckInStrategy):
    """A scanned code is weak evidence: recorded as pending for human approval."""

    method = CheckInMethod.SCANNED_CODE

    def __init__(self, codec: TokenCodec):
        self._codec = codec

    def check_proof(self, *, session: Session, student_id: int, proof_payload: Optional[str], now: datetime) -> None:
        if not proof_payload:
            raise MalformedPayload("A scanned-code check-in needs the scanned payload")

        token = self._codec.decode(proof_payload)
        if token.session_id != session.session_id:
            raise TokenMismatch(f"Code belongs to session {token.session_id}, not {session.session_id}")
        # Only the token's own expiry counts; a later refresh never extends it.
        if token.is_expired(now):
            raise TokenExpired(f"Code expired at {token.expires_at.isoformat()}")

    def decide(self, *, now: datetime, submitted_by: Optional[int]) -> CheckInDecision:
        return CheckInDecision(method=self.method, status=AttendanceStatus.PENDING, check_in_time=now)
