from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import ensure_utc, now_utc
from ..common.validators import require_enum, require_positive_id
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ApprovalKind, RequestStatus
from ..core.exceptions import AlreadyDecided, UnknownRequest, ValidationError
from .gates.base import ApprovalGate
from .model import ApprovalRequest, BulkDecision

logger = logging.getLogger(__name__)


class ApprovalEngine:
    """One life cycle for every approval-gated entity.

    pending -> approved | rejected, exactly once. Concurrent deciders race on a
    compare-and-set; the loser gets AlreadyDecided and no side effect runs twice.
    """

    def __init__(self, gates: Iterable[ApprovalGate]):
        self._gates = {gate.kind: gate for gate in gates}

    def _gate(self, kind: ApprovalKind | str) -> ApprovalGate:
        kind = require_enum(ApprovalKind, kind, "kind")
        gate = self._gates.get(kind)
        if gate is None:
            raise ValidationError(f"No approval gate registered for {kind.value}")
        return gate

    def submit(
        self,
        kind: ApprovalKind | str,
        subject_id: int,
        target_id: int,
        *,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        gate = self._gate(kind)
        now = ensure_utc(now or now_utc())
        request = gate.submit(
            subject_id=require_positive_id(subject_id, "subject_id"),
            target_id=require_positive_id(target_id, "target_id"),
            now=now,
        )
        logger.info("approval requested: kind=%s request=%s", gate.kind.value, request.request_id)
        return request

    def get(self, kind: ApprovalKind | str, request_id: int) -> ApprovalRequest:
        gate = self._gate(kind)
        request = gate.load(require_positive_id(request_id, "request_id"))
        if request is None:
            raise UnknownRequest(f"{gate.kind.value} request {request_id} does not exist")
        return request

    def decide(
        self,
        kind: ApprovalKind | str,
        request_id: int,
        outcome: RequestStatus | str,
        reviewer_id: int,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ApprovalRequest:
        gate = self._gate(kind)
        outcome = require_enum(RequestStatus, outcome, "outcome")
        if outcome == RequestStatus.PENDING:
            raise ValidationError("Outcome must be APPROVED or REJECTED")
        reviewer_id = require_positive_id(reviewer_id, "reviewer_id")
        notes = (notes or "").strip() or None
        now = ensure_utc(now or now_utc())

        request = self.get(gate.kind, request_id)
        if not request.is_pending:
            raise AlreadyDecided(f"{gate.kind.value} request {request.request_id} is already {request.status.value}")

        if not gate.commit(request, outcome, reviewer_id=reviewer_id, reviewed_at=now, notes=notes):
            logger.info("approval race lost: kind=%s request=%s", gate.kind.value, request.request_id)
            raise AlreadyDecided(f"{gate.kind.value} request {request.request_id} was decided concurrently")

        decided = replace(request, status=outcome, reviewer_id=reviewer_id, reviewed_at=now, review_notes=notes)
        logger.info(
            "approval decided: kind=%s request=%s outcome=%s reviewer=%s",
            gate.kind.value, decided.request_id, outcome.value, reviewer_id,
        )
        gate.after_decision(decided)
        return decided

    def decide_many(
        self,
        kind: ApprovalKind | str,
        request_ids: Iterable[int],
        outcome: RequestStatus | str,
        reviewer_id: int,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> BulkDecision:
        """Decide each request on its own; already-decided ones are skipped, not fatal.

        Every id is checked before the first decision, so an unknown or invalid
        id fails the whole batch with nothing applied.
        """
        gate = self._gate(kind)
        request_ids = [require_positive_id(request_id, "request_id") for request_id in request_ids]
        for request_id in request_ids:
            self.get(gate.kind, request_id)

        now = ensure_utc(now or now_utc())
        decided: list[ApprovalRequest] = []
        skipped: list[int] = []
        for request_id in request_ids:
            try:
                decided.append(self.decide(gate.kind, request_id, outcome, reviewer_id, notes, now=now))
            except AlreadyDecided:
                skipped.append(request_id)
        return BulkDecision(decided=tuple(decided), skipped=tuple(skipped))

    def list_pending(self, kind: ApprovalKind | str, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ApprovalRequest]:
        return self._gate(kind).list_pending(limit=int(limit))

    def stats(self) -> dict:
        per_kind = {}
        total_pending = 0
        for kind, gate in self._gates.items():
            counts = gate.stats()
            per_kind[kind.value] = {status.value: int(counts.get(status, 0)) for status in RequestStatus}
            total_pending += int(counts.get(RequestStatus.PENDING, 0))
        return {"by_kind": per_kind, "total_pending": total_pending}
