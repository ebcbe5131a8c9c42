import pytest

from class_attendance.attendance.factory import CheckInStrategyFactory
from class_attendance.attendance.service import CheckInIntake
from class_attendance.container import Container
from class_attendance.main import create_app
from class_attendance.sessions.scheduler import TokenRotationScheduler

from tests.fakes import COURSE_ID, INSTRUCTOR_ID, SESSION_ID, FakeTimer


@pytest.fixture
def app(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = Container(
        codec=world.codec,
        session_manager=world.manager,
        checkin_intake=world.intake,
        approval_engine=world.engine,
        roster_service=world.roster,
        rotation=TokenRotationScheduler(world.manager, auto_refresh=False, timer_factory=FakeTimer),
    )
    return create_app(container)


def _login(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


@pytest.fixture
def instructor(app):
    client = app.test_client()
    _login(client, INSTRUCTOR_ID, "lecturer")
    return client


@pytest.fixture
def student(app):
    client = app.test_client()
    _login(client, 1, "student")
    return client


def test_requires_login(app):
    resp = app.test_client().get(f"/api/sessions/{SESSION_ID}")

    assert resp.status_code == 401


def test_student_cannot_open_window(student):
    resp = student.post(f"/api/sessions/{SESSION_ID}/window", json={})

    assert resp.status_code == 403
    assert resp.get_json()["error"] == "AuthorizationError"


def test_scan_check_in_and_approval_flow(instructor, student, world):
    opened = instructor.post(f"/api/sessions/{SESSION_ID}/window", json={"duration_minutes": 5})
    assert opened.status_code == 201
    payload = opened.get_json()["data"]["payload"]

    checked_in = student.post(f"/api/sessions/{SESSION_ID}/checkin", json={"method": "QR", "payload": payload})
    assert checked_in.status_code == 201
    record = checked_in.get_json()["data"]
    assert record["status"] == "PENDING"

    pending = instructor.get(f"/api/sessions/{SESSION_ID}/attendance/pending")
    assert [r["student_id"] for r in pending.get_json()["data"]] == [1]

    approved = instructor.post(f"/api/attendance/{record['record_id']}/approve", json={})
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "APPROVED"

    again = instructor.post(f"/api/attendance/{record['record_id']}/reject", json={})
    assert again.status_code == 409
    assert again.get_json()["error"] == "AlreadyDecided"

    roster = instructor.get(f"/api/sessions/{SESSION_ID}/roster").get_json()["data"]
    assert roster["counts"]["verified"] == 1


def test_open_window_twice_is_conflict(instructor):
    instructor.post(f"/api/sessions/{SESSION_ID}/window", json={})

    resp = instructor.post(f"/api/sessions/{SESSION_ID}/window", json={})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "WindowAlreadyOpen"


def test_check_in_on_closed_window_is_conflict(student, world):
    world.proximity.present.add((SESSION_ID, 1))

    resp = student.post(f"/api/sessions/{SESSION_ID}/checkin", json={"method": "BEACON"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "WindowClosed"


def test_students_cannot_submit_manual(student):
    resp = student.post(f"/api/sessions/{SESSION_ID}/checkin", json={"method": "manual"})

    assert resp.status_code == 400


def test_unknown_session_is_not_found(instructor):
    resp = instructor.post("/api/sessions/999/window", json={})

    assert resp.status_code == 404


def test_qr_png_and_close(instructor):
    instructor.post(f"/api/sessions/{SESSION_ID}/window", json={})

    png = instructor.get(f"/api/sessions/{SESSION_ID}/qr.png")
    assert png.status_code == 200
    assert png.mimetype == "image/png"

    closed = instructor.delete(f"/api/sessions/{SESSION_ID}/window")
    assert closed.get_json()["data"]["check_in_window_open"] is False
    assert instructor.get(f"/api/sessions/{SESSION_ID}/qr.png").status_code == 409


def test_manual_absent_by_instructor(instructor):
    resp = instructor.post(f"/api/sessions/{SESSION_ID}/attendance/3", json={"status": "absent"})

    assert resp.status_code == 201
    assert resp.get_json()["data"]["status"] == "ABSENT"


def test_enrollment_request_flow(app, student):
    created = student.post("/api/approvals/course_enrollment", json={"target_id": COURSE_ID})
    assert created.status_code == 201
    request_id = created.get_json()["data"]["request_id"]

    assert student.post(f"/api/approvals/course_enrollment/{request_id}/decision", json={"outcome": "APPROVED"}).status_code == 403

    lecturer = app.test_client()
    _login(lecturer, INSTRUCTOR_ID, "lecturer")
    decided = lecturer.post(
        f"/api/approvals/course_enrollment/{request_id}/decision",
        json={"outcome": "REJECTED", "notes": "Course is full"},
    )
    assert decided.status_code == 200
    assert decided.get_json()["data"]["review_notes"] == "Course is full"

    bulk = lecturer.post("/api/approvals/course_enrollment/bulk", json={"request_ids": [request_id], "outcome": "APPROVED"})
    assert bulk.get_json()["data"] == {"decided": [], "skipped": [request_id]}


def test_stats_needs_admin_role(app, instructor):
    assert instructor.get("/api/approvals/stats").status_code == 403

    admin = app.test_client()
    _login(admin, 50, "admin")
    resp = admin.get("/api/approvals/stats")
    assert resp.status_code == 200
    assert "course_enrollment" in resp.get_json()["data"]["by_kind"]


def test_unknown_kind_is_validation_error(app):
    admin = app.test_client()
    _login(admin, 50, "admin")

    assert admin.get("/api/approvals/payroll/pending").status_code == 400


def test_opening_and_closing_a_window_drives_the_rotation_timer(app, instructor):
    rotation = app.extensions["class_attendance"].rotation

    instructor.post(f"/api/sessions/{SESSION_ID}/window", json={})
    assert rotation.watched() == [SESSION_ID]

    instructor.delete(f"/api/sessions/{SESSION_ID}/window")
    assert rotation.watched() == []


def test_beacon_check_in_without_detection_is_rejected(instructor, student):
    instructor.post(f"/api/sessions/{SESSION_ID}/window", json={})

    resp = student.post(f"/api/sessions/{SESSION_ID}/checkin", json={"method": "BEACON"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "ProximityNotDetected"


def test_beacon_check_in_is_refused_when_no_detector_is_configured(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    world.proximity.present.add((SESSION_ID, 1))
    container = Container(
        codec=world.codec,
        session_manager=world.manager,
        checkin_intake=CheckInIntake(
            world.attendance,
            world.sessions,
            world.students,
            strategy_factory=CheckInStrategyFactory(world.codec),
        ),
        approval_engine=world.engine,
        roster_service=world.roster,
        rotation=TokenRotationScheduler(world.manager, auto_refresh=False, timer_factory=FakeTimer),
    )
    app = create_app(container)
    lecturer, learner = app.test_client(), app.test_client()
    _login(lecturer, INSTRUCTOR_ID, "lecturer")
    _login(learner, 1, "student")
    lecturer.post(f"/api/sessions/{SESSION_ID}/window", json={})

    resp = learner.post(f"/api/sessions/{SESSION_ID}/checkin", json={"method": "BEACON"})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "ProximityNotDetected"
    assert world.attendance.records == {}


@pytest.mark.parametrize("minutes", ["inf", "-inf", "nan", "abc"])
def test_unusable_window_duration_is_a_validation_error(instructor, minutes):
    resp = instructor.post(f"/api/sessions/{SESSION_ID}/window", json={"duration_minutes": minutes})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationError"
