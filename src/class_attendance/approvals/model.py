from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import ApprovalKind, RequestStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ApprovalRequest:
    """Any approval-gated entity seen through one life cycle.

    ``subject_id`` is who asked (student/user), ``target_id`` what for
    (course/school/account/session). Reviewer and review time are both unset
    while pending and both set once decided.
    """

    request_id: int
    kind: ApprovalKind
    subject_id: int
    target_id: int
    status: RequestStatus
    requested_at: datetime
    reviewer_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None

    def __post_init__(self) -> None:
        reviewed = (self.reviewer_id is not None, self.reviewed_at is not None)
        if self.status == RequestStatus.PENDING and any(reviewed):
            raise ValidationError("A pending request cannot carry a reviewer")
        if self.status != RequestStatus.PENDING and not all(reviewed):
            raise ValidationError("A decided request must carry its reviewer and review time")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class BulkDecision:
    decided: tuple[ApprovalRequest, ...] = ()
    skipped: tuple[int, ...] = field(default=())
