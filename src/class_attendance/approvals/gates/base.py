from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ...core.enums import ApprovalKind, RequestStatus
from ...core.exceptions import ValidationError
from ..model import ApprovalRequest


class ApprovalGate(ABC):
    """One approval-gated entity kind behind the shared approval life cycle."""

    kind: ApprovalKind

    @abstractmethod
    def load(self, request_id: int) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    @abstractmethod
    def commit(
        self,
        request: ApprovalRequest,
        outcome: RequestStatus,
        *,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        """Persist the decision only if the request is still pending."""

        raise NotImplementedError

    def after_decision(self, decided: ApprovalRequest) -> None:
        """Runs once, after a successful commit."""

    def submit(self, *, subject_id: int, target_id: int, now: datetime) -> ApprovalRequest:
        raise ValidationError(f"{self.kind.value} requests cannot be submitted directly")

    @abstractmethod
    def list_pending(self, *, limit: int) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> Mapping[RequestStatus, int]:
        raise NotImplementedError
