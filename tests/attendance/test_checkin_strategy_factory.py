import pytest

from class_attendance.attendance.factory import CheckInStrategyFactory
from class_attendance.attendance.strategies.beacon_strategy import BeaconStrategy
from class_attendance.attendance.strategies.manual_strategy import ManualAbsentStrategy, ManualStrategy
from class_attendance.attendance.strategies.scanned_code_strategy import ScannedCodeStrategy
from class_attendance.core.enums import AttendanceStatus, CheckInMethod
from class_attendance.core.exceptions import ProximityNotDetected, ValidationError
from class_attendance.sessions.model import Session
from class_attendance.tokens.codec import TokenCodec

from tests.fakes import SIGNING_KEY


@pytest.fixture
def factory():
    return CheckInStrategyFactory(TokenCodec(SIGNING_KEY))


def test_factory_picks_strategy_per_method(factory):
    assert isinstance(factory.for_method(CheckInMethod.BEACON), BeaconStrategy)
    assert isinstance(factory.for_method(CheckInMethod.SCANNED_CODE), ScannedCodeStrategy)
    assert isinstance(factory.for_method(CheckInMethod.MANUAL), ManualStrategy)
    assert isinstance(factory.for_absence(), ManualAbsentStrategy)


def test_absent_is_not_a_check_in_method(factory):
    with pytest.raises(ValidationError):
        factory.for_method(CheckInMethod.ABSENT)


def test_decisions_per_method(factory, fixed_now):
    beacon = factory.for_method(CheckInMethod.BEACON).decide(now=fixed_now, submitted_by=None)
    scan = factory.for_method(CheckInMethod.SCANNED_CODE).decide(now=fixed_now, submitted_by=None)
    manual = factory.for_method(CheckInMethod.MANUAL).decide(now=fixed_now, submitted_by=7)
    absent = factory.for_absence().decide(now=fixed_now, submitted_by=7)

    assert (beacon.status, beacon.reviewer_id) == (AttendanceStatus.VERIFIED, None)
    assert (scan.status, scan.check_in_time) == (AttendanceStatus.PENDING, fixed_now)
    assert (manual.status, manual.reviewer_id, manual.reviewed_at) == (AttendanceStatus.VERIFIED, 7, fixed_now)
    assert (absent.status, absent.check_in_time) == (AttendanceStatus.ABSENT, None)
    assert factory.for_absence().requires_open_window is False


def test_beacon_without_a_proximity_signal_is_never_trusted(factory, fixed_now):
    session = Session(session_id=100, course_id=10, instructor_id=7, starts_at=fixed_now, ends_at=None)

    with pytest.raises(ProximityNotDetected):
        factory.for_method(CheckInMethod.BEACON).check_proof(
            session=session, student_id=1, proof_payload=None, now=fixed_now
        )
