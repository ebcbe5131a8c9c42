import threading
from datetime import timedelta

import pytest

from class_attendance.approvals.gates.request_gate import RequestGate
from class_attendance.approvals.model import ApprovalRequest
from class_attendance.approvals.service import ApprovalEngine
from class_attendance.core.enums import ApprovalKind, RequestStatus
from class_attendance.core.exceptions import (
    AlreadyDecided,
    DuplicateRequest,
    UnknownRequest,
    ValidationError,
)

from tests.fakes import COURSE_ID, INSTRUCTOR_ID, SESSION_ID, InMemoryRequests, RecordingNotifier

ENROLL = ApprovalKind.COURSE_ENROLLMENT


def _request(world, student_id=1):
    return world.engine.submit(ENROLL, student_id, COURSE_ID, now=world.now)


def test_submit_creates_pending_request(world):
    req = _request(world)

    assert req.status == RequestStatus.PENDING
    assert (req.subject_id, req.target_id) == (1, COURSE_ID)
    assert world.engine.list_pending(ENROLL) == [req]


def test_submit_twice_while_pending_is_a_duplicate(world):
    _request(world)

    with pytest.raises(DuplicateRequest):
        _request(world)


def test_approve_stamps_reviewer_and_runs_side_effect(world):
    req = _request(world)
    later = world.now + timedelta(hours=1)

    decided = world.engine.decide(ENROLL, req.request_id, "approved", INSTRUCTOR_ID, "  welcome ", now=later)

    assert decided.status == RequestStatus.APPROVED
    assert decided.reviewer_id == INSTRUCTOR_ID
    assert decided.reviewed_at == later
    assert decided.review_notes == "welcome"
    assert world.enrollment_requests.get(req.request_id) == decided
    assert world.enrollments.enrolled == [(1, COURSE_ID)]
    assert world.notifier.sent[0]["title"] == "Course Enrollment Approved"
    assert world.notifier.sent[0]["type"] == "approval"
    assert world.notifier.sent[0]["user_id"] == 1


def test_reject_skips_side_effect_and_notifies_with_notes(world):
    req = _request(world)

    decided = world.engine.decide(ENROLL, req.request_id, RequestStatus.REJECTED, INSTRUCTOR_ID, "Course is full")

    assert decided.status == RequestStatus.REJECTED
    assert world.enrollments.enrolled == []
    assert world.notifier.sent == [
        {
            "user_id": 1,
            "title": "Course Enrollment Rejected",
            "message": "Course is full",
            "type": "rejection",
            "at": decided.reviewed_at,
        }
    ]


def test_deciding_twice_fails_and_keeps_first_decision(world):
    req = _request(world)
    first = world.engine.decide(ENROLL, req.request_id, "APPROVED", INSTRUCTOR_ID, now=world.now)

    with pytest.raises(AlreadyDecided):
        world.engine.decide(ENROLL, req.request_id, "REJECTED", 99, now=world.now + timedelta(minutes=1))

    assert world.enrollment_requests.get(req.request_id) == first
    assert len(world.enrollments.enrolled) == 1
    assert len(world.notifier.sent) == 1


def test_racing_reviewers_produce_exactly_one_decision(world):
    req = _request(world)
    barrier = threading.Barrier(6)
    won, lost = [], []

    def decide(reviewer_id):
        barrier.wait()
        try:
            won.append(world.engine.decide(ENROLL, req.request_id, "APPROVED", reviewer_id, now=world.now))
        except AlreadyDecided:
            lost.append(reviewer_id)

    threads = [threading.Thread(target=decide, args=(i,)) for i in range(1, 7)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(won) == 1
    assert len(lost) == 5
    assert world.enrollments.enrolled == [(1, COURSE_ID)]


def test_lost_compare_and_set_is_already_decided(world):
    req = _request(world)

    class StaleRequests(InMemoryRequests):
        def get(self, request_id):
            return req

    stale = StaleRequests(ENROLL)
    stale.requests[req.request_id] = world.enrollment_requests.get(req.request_id)
    stale.mark_decided(request_id=req.request_id, status=RequestStatus.REJECTED, reviewer_id=5, reviewed_at=world.now)
    effects = []
    engine = ApprovalEngine([RequestGate(ENROLL, stale, on_approved=effects.append)])

    with pytest.raises(AlreadyDecided):
        engine.decide(ENROLL, req.request_id, "APPROVED", INSTRUCTOR_ID, now=world.now)
    assert effects == []


def test_decide_validates_outcome_and_ids(world):
    req = _request(world)

    with pytest.raises(ValidationError):
        world.engine.decide(ENROLL, req.request_id, "PENDING", INSTRUCTOR_ID)
    with pytest.raises(ValidationError):
        world.engine.decide(ENROLL, req.request_id, "maybe", INSTRUCTOR_ID)
    with pytest.raises(ValidationError):
        world.engine.decide(ENROLL, req.request_id, "APPROVED", None)
    with pytest.raises(UnknownRequest):
        world.engine.decide(ENROLL, 999, "APPROVED", INSTRUCTOR_ID)
    with pytest.raises(ValidationError):
        world.engine.decide(ApprovalKind.SCHOOL_MEMBERSHIP, 1, "APPROVED", INSTRUCTOR_ID)


def test_decide_many_skips_already_decided(world):
    a = _request(world, 1)
    b = _request(world, 2)
    c = _request(world, 3)
    world.engine.decide(ENROLL, b.request_id, "REJECTED", INSTRUCTOR_ID, now=world.now)

    result = world.engine.decide_many(
        ENROLL, [a.request_id, b.request_id, c.request_id], "APPROVED", INSTRUCTOR_ID, now=world.now
    )

    assert [r.request_id for r in result.decided] == [a.request_id, c.request_id]
    assert result.skipped == (b.request_id,)
    assert world.enrollments.enrolled == [(1, COURSE_ID), (3, COURSE_ID)]


def test_decide_many_with_an_unknown_id_applies_nothing(world):
    a = _request(world, 1)

    with pytest.raises(UnknownRequest):
        world.engine.decide_many(ENROLL, [a.request_id, 999], "APPROVED", INSTRUCTOR_ID, now=world.now)

    assert world.enrollment_requests.get(a.request_id).is_pending
    assert world.enrollments.enrolled == []
    assert world.notifier.sent == []


def test_decide_many_with_an_invalid_id_applies_nothing(world):
    a = _request(world, 1)

    with pytest.raises(ValidationError):
        world.engine.decide_many(ENROLL, [a.request_id, "x"], "APPROVED", INSTRUCTOR_ID, now=world.now)

    assert world.enrollment_requests.get(a.request_id).is_pending


def test_concurrent_submits_leave_one_pending_request(world):
    barrier = threading.Barrier(6)
    outcomes = []

    def submit():
        barrier.wait()
        try:
            outcomes.append(_request(world).request_id)
        except DuplicateRequest:
            outcomes.append("duplicate")

    threads = [threading.Thread(target=submit) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("duplicate") == 5
    assert len(world.engine.list_pending(ENROLL)) == 1


def test_attendance_review_notes_are_stored(world):
    token = world.manager.open_window(SESSION_ID, now=world.now)
    record = world.intake.submit(SESSION_ID, 2, "QR", world.manager.payload_for(token), now=world.now)

    world.engine.decide(ApprovalKind.ATTENDANCE, record.record_id, "REJECTED", INSTRUCTOR_ID, "not in room", now=world.now)

    reloaded = world.engine.get(ApprovalKind.ATTENDANCE, record.record_id)
    assert reloaded.status == RequestStatus.REJECTED
    assert reloaded.review_notes == "not in room"
    assert world.attendance.get_by_id(record.record_id).review_notes == "not in room"


def test_stats_counts_per_kind(world):
    _request(world, 1)
    req = _request(world, 2)
    world.engine.decide(ENROLL, req.request_id, "APPROVED", INSTRUCTOR_ID, now=world.now)

    stats = world.engine.stats()

    assert stats["by_kind"]["course_enrollment"] == {"PENDING": 1, "APPROVED": 1, "REJECTED": 0}
    assert stats["by_kind"]["attendance"] == {"PENDING": 0, "APPROVED": 0, "REJECTED": 0}
    assert stats["total_pending"] == 1


def test_attendance_requests_cannot_be_submitted_directly(world):
    with pytest.raises(ValidationError):
        world.engine.submit(ApprovalKind.ATTENDANCE, 1, SESSION_ID)


def test_attendance_decision_on_verified_record_is_already_decided(world):
    world.manager.open_window(SESSION_ID, now=world.now)
    record = world.intake.submit(SESSION_ID, 1, "MANUAL", submitted_by=INSTRUCTOR_ID, now=world.now)

    with pytest.raises(AlreadyDecided):
        world.engine.decide(ApprovalKind.ATTENDANCE, record.record_id, "REJECTED", INSTRUCTOR_ID)


def test_pending_attendance_is_listed_as_requests(world):
    token = world.manager.open_window(SESSION_ID, now=world.now)
    record = world.intake.submit(SESSION_ID, 2, "QR", world.manager.payload_for(token), now=world.now)

    pending = world.engine.list_pending(ApprovalKind.ATTENDANCE)

    assert pending == [
        ApprovalRequest(
            request_id=record.record_id,
            kind=ApprovalKind.ATTENDANCE,
            subject_id=2,
            target_id=SESSION_ID,
            status=RequestStatus.PENDING,
            requested_at=world.now,
        )
    ]


def test_request_invariant_reviewer_only_when_decided(fixed_now):
    with pytest.raises(ValidationError):
        ApprovalRequest(
            request_id=1, kind=ENROLL, subject_id=1, target_id=1,
            status=RequestStatus.PENDING, requested_at=fixed_now, reviewer_id=3,
        )
    with pytest.raises(ValidationError):
        ApprovalRequest(
            request_id=1, kind=ENROLL, subject_id=1, target_id=1,
            status=RequestStatus.APPROVED, requested_at=fixed_now,
        )


def test_gate_without_notifier_only_runs_effect(fixed_now):
    requests = InMemoryRequests(ApprovalKind.ACCOUNT_ACTIVATION)
    activated = []
    engine = ApprovalEngine(
        [RequestGate(ApprovalKind.ACCOUNT_ACTIVATION, requests, on_approved=lambda r: activated.append(r.target_id))]
    )
    req = engine.submit("account_activation", 4, 4, now=fixed_now)

    engine.decide("account_activation", req.request_id, "approved", 1, now=fixed_now)

    assert activated == [4]


def test_membership_rejection_default_message(fixed_now):
    requests = InMemoryRequests(ApprovalKind.SCHOOL_MEMBERSHIP)
    notifier = RecordingNotifier()
    engine = ApprovalEngine(
        [RequestGate(ApprovalKind.SCHOOL_MEMBERSHIP, requests, on_approved=lambda r: None, notifier=notifier)]
    )
    req = engine.submit(ApprovalKind.SCHOOL_MEMBERSHIP, 5, 2, now=fixed_now)

    engine.decide(ApprovalKind.SCHOOL_MEMBERSHIP, req.request_id, "rejected", 1, now=fixed_now)

    assert notifier.sent[0]["title"] == "School Membership Rejected"
    assert notifier.sent[0]["message"] == "Your membership request has been rejected."
