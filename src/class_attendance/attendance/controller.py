from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, instructor_required, json_body, ok, student_required
from ..core.enums import ApprovalKind, CheckInMethod, RequestStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    intake = container.checkin_intake

    @app.route("/api/sessions/<int:session_id>/checkin", methods=["POST"], endpoint="student_checkin")
    @student_required
    def student_checkin(session_id: int):
        data = json_body()
        method = data.get("method") or CheckInMethod.SCANNED_CODE.value
        if str(method).upper() == CheckInMethod.MANUAL.value:
            raise ValidationError("Manual check-ins are recorded by the instructor")
        record = intake.submit(session_id, current_user_id(), method, data.get("payload"))
        return ok(record, 201)

    @app.route("/api/sessions/<int:session_id>/checkin/me", methods=["GET"], endpoint="my_checkin")
    @student_required
    def my_checkin(session_id: int):
        return ok(intake.get_record(session_id, current_user_id()))

    @app.route(
        "/api/sessions/<int:session_id>/attendance/<int:student_id>",
        methods=["POST"],
        endpoint="manual_attendance",
    )
    @instructor_required
    def manual_attendance(session_id: int, student_id: int):
        status = str(json_body().get("status") or "present").strip().lower()
        if status == "present":
            record = intake.submit(session_id, student_id, CheckInMethod.MANUAL, submitted_by=current_user_id())
        elif status == "absent":
            record = intake.mark_absent(session_id, student_id, instructor_id=current_user_id())
        else:
            raise ValidationError("status must be 'present' or 'absent'")
        return ok(record, 201)

    @app.route("/api/sessions/<int:session_id>/attendance/pending", methods=["GET"], endpoint="pending_checkins")
    @instructor_required
    def pending_checkins(session_id: int):
        return ok(list(intake.list_pending(session_id)))

    def _decide(record_id: int, outcome: RequestStatus):
        decided = container.approval_engine.decide(
            ApprovalKind.ATTENDANCE,
            record_id,
            outcome,
            current_user_id(),
            json_body().get("notes"),
        )
        return ok(decided)

    @app.route("/api/attendance/<int:record_id>/approve", methods=["POST"], endpoint="approve_checkin")
    @instructor_required
    def approve_checkin(record_id: int):
        return _decide(record_id, RequestStatus.APPROVED)

    @app.route("/api/attendance/<int:record_id>/reject", methods=["POST"], endpoint="reject_checkin")
    @instructor_required
    def reject_checkin(record_id: int):
        return _decide(record_id, RequestStatus.REJECTED)
