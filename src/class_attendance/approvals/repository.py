from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ApprovalRequest


class ApprovalRequestRepository(Protocol):
    """Storage of one kind of approval request (enrollment, membership, activation)."""

    def create_pending(self, *, subject_id: int, target_id: int, requested_at: datetime) -> Optional[int]:
        """Insert a pending request; None when one is already pending for (subject, target)."""

        raise NotImplementedError

    def get(self, request_id: int) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    def mark_decided(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Compare-and-set: apply only while the request is still pending."""

        raise NotImplementedError

    def count_by_status(self) -> Mapping[RequestStatus, int]:
        raise NotImplementedError
