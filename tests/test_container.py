from class_attendance.attendance.mysql_proximity_signal import MySQLProximitySignal
from class_attendance.container import build_container
from class_attendance.database.connection import DatabaseConnection
from class_attendance.sessions.scheduler import TokenRotationScheduler

from tests.fakes import SIGNING_KEY


def _build(monkeypatch, **kwargs):
    monkeypatch.setattr(DatabaseConnection, "_instance", None)
    return build_container(db_config={}, signing_key=SIGNING_KEY, **kwargs)


def test_rotation_is_built_even_without_auto_refresh(monkeypatch):
    container = _build(monkeypatch, auto_refresh=False)

    assert isinstance(container.rotation, TokenRotationScheduler)
    assert container.rotation.watched() == []


def test_beacon_evidence_comes_from_the_detection_feed(monkeypatch):
    without = _build(monkeypatch)
    with_feed = _build(monkeypatch, beacon_max_age_seconds=90)

    assert without.checkin_intake._factory.proximity is None
    assert isinstance(with_feed.checkin_intake._factory.proximity, MySQLProximitySignal)
