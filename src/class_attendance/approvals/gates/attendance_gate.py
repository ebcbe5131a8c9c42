from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ...attendance.model import AttendanceRecord
from ...attendance.repository import AttendanceRepository
from ...core.constants import SYSTEM_REVIEWER_ID
from ...core.enums import ApprovalKind, AttendanceStatus, CheckInMethod, RequestStatus
from ..model import ApprovalRequest
from .base import ApprovalGate

_STATUS = {
    AttendanceStatus.PENDING: RequestStatus.PENDING,
    AttendanceStatus.VERIFIED: RequestStatus.APPROVED,
    AttendanceStatus.ABSENT: RequestStatus.REJECTED,
}


def as_request(record: AttendanceRecord) -> ApprovalRequest:
    """View a scanned-code check-in as an approval request for its session."""
    status = _STATUS[record.status]
    reviewed = status != RequestStatus.PENDING
    return ApprovalRequest(
        request_id=int(record.record_id),
        kind=ApprovalKind.ATTENDANCE,
        subject_id=record.student_id,
        target_id=record.session_id,
        status=status,
        requested_at=record.recorded_at,
        # Beacon check-ins are verified by the system itself.
        reviewer_id=(record.reviewer_id if record.reviewer_id is not None else SYSTEM_REVIEWER_ID) if reviewed else None,
        reviewed_at=(record.reviewed_at or record.recorded_at) if reviewed else None,
        review_notes=record.review_notes,
    )


class AttendanceGate(ApprovalGate):
    """Pending scanned-code check-ins reviewed by the instructor.

    Approving verifies the record and keeps its method and check-in time.
    Rejecting marks it absent and clears the check-in time.
    """

    kind = ApprovalKind.ATTENDANCE

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def load(self, request_id: int) -> Optional[ApprovalRequest]:
        record = self._attendance.get_by_id(request_id)
        return as_request(record) if record else None

    def commit(
        self,
        request: ApprovalRequest,
        outcome: RequestStatus,
        *,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        record = self._attendance.get_by_id(request.request_id)
        if record is None or not record.is_pending:
            return False

        if outcome == RequestStatus.APPROVED:
            status, method, check_in_time = AttendanceStatus.VERIFIED, record.method, record.check_in_time
        else:
            status, method, check_in_time = AttendanceStatus.ABSENT, CheckInMethod.ABSENT, None

        return self._attendance.decide_pending(
            record_id=request.request_id,
            status=status,
            method=method,
            check_in_time=check_in_time,
            reviewer_id=reviewer_id,
            reviewed_at=reviewed_at,
            review_notes=notes,
        )

    def list_pending(self, *, limit: int) -> Sequence[ApprovalRequest]:
        return [as_request(r) for r in self._attendance.list_pending(limit=limit)]

    def stats(self) -> Mapping[RequestStatus, int]:
        counts = {status: 0 for status in RequestStatus}
        for status, n in self._attendance.count_by_status().items():
            counts[_STATUS[status]] += int(n)
        return counts
