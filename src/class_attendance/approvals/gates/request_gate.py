from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Sequence

from ...core.enums import ApprovalKind, RequestStatus
from ...core.exceptions import DuplicateRequest
from ..effects import Notifier
from ..model import ApprovalRequest
from ..repository import ApprovalRequestRepository
from .base import ApprovalGate

logger = logging.getLogger(__name__)

_TITLES = {
    ApprovalKind.COURSE_ENROLLMENT: ("Course Enrollment", "enrollment"),
    ApprovalKind.SCHOOL_MEMBERSHIP: ("School Membership", "membership"),
    ApprovalKind.ACCOUNT_ACTIVATION: ("Account Activation", "account activation"),
}


class RequestGate(ApprovalGate):
    """Gate for request-table entities (enrollment, membership, activation).

    ``on_approved`` performs the downstream write; it is called only for an
    approved request. Subjects are notified of both outcomes.
    """

    def __init__(
        self,
        kind: ApprovalKind,
        repository: ApprovalRequestRepository,
        *,
        on_approved: Callable[[ApprovalRequest], None],
        notifier: Optional[Notifier] = None,
    ):
        self.kind = kind
        self._requests = repository
        self._on_approved = on_approved
        self._notifier = notifier

    def load(self, request_id: int) -> Optional[ApprovalRequest]:
        return self._requests.get(request_id)

    def commit(
        self,
        request: ApprovalRequest,
        outcome: RequestStatus,
        *,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        return self._requests.mark_decided(
            request_id=request.request_id,
            status=outcome,
            reviewer_id=reviewer_id,
            reviewed_at=reviewed_at,
            review_notes=notes,
        )

    def after_decision(self, decided: ApprovalRequest) -> None:
        if decided.status == RequestStatus.APPROVED:
            self._on_approved(decided)
            logger.info("approval effect applied: kind=%s request=%s", self.kind.value, decided.request_id)
        if self._notifier:
            self._notify(decided)

    def _notify(self, decided: ApprovalRequest) -> None:
        label, noun = _TITLES.get(self.kind, (self.kind.value.replace("_", " ").title(), "request"))
        if decided.status == RequestStatus.APPROVED:
            title = f"{label} Approved"
            message = f"Your {noun} request has been approved."
            notification_type = "approval"
        else:
            title = f"{label} Rejected"
            message = decided.review_notes or f"Your {noun} request has been rejected."
            notification_type = "rejection"

        self._notifier.notify(
            user_id=decided.subject_id,
            title=title,
            message=message,
            notification_type=notification_type,
            created_at=decided.reviewed_at,
        )

    def submit(self, *, subject_id: int, target_id: int, now: datetime) -> ApprovalRequest:
        request_id = self._requests.create_pending(subject_id=subject_id, target_id=target_id, requested_at=now)
        if request_id is None:
            raise DuplicateRequest(
                f"A pending {self.kind.value} request already exists for {subject_id} -> {target_id}"
            )
        return ApprovalRequest(
            request_id=request_id,
            kind=self.kind,
            subject_id=subject_id,
            target_id=target_id,
            status=RequestStatus.PENDING,
            requested_at=now,
        )

    def list_pending(self, *, limit: int) -> Sequence[ApprovalRequest]:
        return self._requests.list_requests(status=RequestStatus.PENDING, limit=limit)

    def stats(self) -> Mapping[RequestStatus, int]:
        return self._requests.count_by_status()
