from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_student(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_session(
        self,
        session_id: int,
        *,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_pending(self, *, limit: int = 200) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_by_status(self) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError

    def save_checkin(
        self,
        *,
        record: AttendanceRecord,
        require_window_open_at: Optional[datetime],
    ) -> Optional[AttendanceRecord]:
        """Atomically (per session) check the window and upsert the record.

        Returns None when ``require_window_open_at`` is given and the window is
        not open at that instant. Otherwise returns the stored record, which is
        the existing one when ``record`` does not supersede it.
        """

        raise NotImplementedError

    def decide_pending(
        self,
        *,
        record_id: int,
        status: AttendanceStatus,
        method: CheckInMethod,
        check_in_time: Optional[datetime],
        reviewer_id: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Compare-and-set: apply only while the record is still pending."""

        raise NotImplementedError
