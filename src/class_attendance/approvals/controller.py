from __future__ import annotations

from flask import Flask, request

from ..common.validators import require_enum
from ..common.web import current_user_id, json_body, login_required, ok, require_role
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ApprovalKind, Role
from ..core.exceptions import ValidationError
from ..container import Container

# Who may decide each kind of request.
DECIDERS = {
    ApprovalKind.COURSE_ENROLLMENT: (Role.LECTURER, Role.HEAD_LECTURER),
    ApprovalKind.SCHOOL_MEMBERSHIP: (Role.HEAD_LECTURER, Role.ADMIN, Role.SYSTEM_ADMIN),
    ApprovalKind.ACCOUNT_ACTIVATION: (Role.ADMIN, Role.SYSTEM_ADMIN),
    ApprovalKind.ATTENDANCE: (Role.LECTURER, Role.HEAD_LECTURER),
}


def register(app: Flask, container: Container) -> None:
    engine = container.approval_engine

    def _kind(value: str) -> ApprovalKind:
        return require_enum(ApprovalKind, value, "kind")

    def _require_decider(kind: ApprovalKind) -> None:
        require_role(*DECIDERS.get(kind, ()))

    @app.route("/api/approvals/<kind>", methods=["POST"], endpoint="submit_approval")
    @login_required
    def submit_approval(kind: str):
        kind = _kind(kind)
        data = json_body()
        target_id = data.get("target_id")
        if kind == ApprovalKind.ACCOUNT_ACTIVATION and target_id in (None, ""):
            target_id = current_user_id()
        return ok(engine.submit(kind, current_user_id(), target_id), 201)

    @app.route("/api/approvals/<kind>/pending", methods=["GET"], endpoint="pending_approvals")
    @login_required
    def pending_approvals(kind: str):
        kind = _kind(kind)
        _require_decider(kind)
        try:
            limit = int(request.args.get("limit", DEFAULT_LIST_LIMIT))
        except ValueError:
            raise ValidationError("limit must be an integer")
        return ok(list(engine.list_pending(kind, limit=limit)))

    @app.route("/api/approvals/<kind>/<int:request_id>/decision", methods=["POST"], endpoint="decide_approval")
    @login_required
    def decide_approval(kind: str, request_id: int):
        kind = _kind(kind)
        _require_decider(kind)
        data = json_body()
        return ok(engine.decide(kind, request_id, data.get("outcome"), current_user_id(), data.get("notes")))

    @app.route("/api/approvals/<kind>/bulk", methods=["POST"], endpoint="bulk_decide_approvals")
    @login_required
    def bulk_decide_approvals(kind: str):
        kind = _kind(kind)
        _require_decider(kind)
        data = json_body()
        ids = data.get("request_ids")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("request_ids must be a non-empty list")
        result = engine.decide_many(kind, ids, data.get("outcome"), current_user_id(), data.get("notes"))
        return ok(result)

    @app.route("/api/approvals/stats", methods=["GET"], endpoint="approval_stats")
    @login_required
    def approval_stats():
        require_role(Role.HEAD_LECTURER, Role.ADMIN, Role.SYSTEM_ADMIN)
        return ok(engine.stats())
