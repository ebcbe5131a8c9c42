from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class VerificationToken:
    """Payload embedded in a scannable check-in code.

    Course code/name are denormalized so an offline scanner can show what it
    scanned. Tokens are never mutated; a refresh mints a new one.
    """

    session_id: int
    course_id: int
    course_code: str
    course_name: str
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at <= self.issued_at:
            raise ValidationError("Token must expire after it is issued")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def seconds_remaining(self, now: datetime) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))
