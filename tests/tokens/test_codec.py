from datetime import datetime, timedelta, timezone

import jwt
import pytest

from class_attendance.core.exceptions import MalformedPayload, ValidationError
from class_attendance.sessions.model import Course, Session
from class_attendance.tokens.codec import TokenCodec
from class_attendance.tokens.model import VerificationToken

from tests.fakes import SIGNING_KEY

T0 = datetime(2025, 3, 3, 9, 0, 0, tzinfo=timezone.utc)
COURSE = Course(course_id=10, code="CS101", name="Intro to Programming")
SESSION = Session(session_id=100, course_id=10, instructor_id=7, starts_at=T0, ends_at=None)


def test_encode_then_decode_keeps_session_and_course_identity():
    codec = TokenCodec(SIGNING_KEY)

    payload = codec.encode(SESSION, COURSE, T0 + timedelta(minutes=5), issued_at=T0)
    token = codec.decode(payload)

    assert token == VerificationToken(
        session_id=100,
        course_id=10,
        course_code="CS101",
        course_name="Intro to Programming",
        issued_at=T0,
        expires_at=T0 + timedelta(minutes=5),
    )


def test_decode_does_not_reject_expired_tokens_itself():
    codec = TokenCodec(SIGNING_KEY)
    payload = codec.encode(SESSION, COURSE, T0 - timedelta(minutes=1), issued_at=T0 - timedelta(minutes=6))

    token = codec.decode(payload)

    assert token.is_expired(T0)


def test_peek_reads_claims_without_the_key():
    payload = TokenCodec(SIGNING_KEY).encode(SESSION, COURSE, T0 + timedelta(minutes=5), issued_at=T0)

    token = TokenCodec("some-other-key-that-is-long-enough!!").peek(payload)

    assert token.session_id == 100
    assert token.seconds_remaining(T0 + timedelta(minutes=4)) == 60
    assert not token.is_expired(T0 + timedelta(minutes=4, seconds=59))
    assert token.is_expired(T0 + timedelta(minutes=5))


def test_decode_rejects_a_foreign_signature():
    payload = TokenCodec("some-other-key-that-is-long-enough!!").encode(
        SESSION, COURSE, T0 + timedelta(minutes=5), issued_at=T0
    )

    with pytest.raises(MalformedPayload):
        TokenCodec(SIGNING_KEY).decode(payload)


@pytest.mark.parametrize("payload", ["", "   ", "not-a-token", "a.b.c"])
def test_decode_rejects_garbage(payload):
    with pytest.raises(MalformedPayload):
        TokenCodec(SIGNING_KEY).decode(payload)


def test_decode_rejects_missing_claims():
    payload = jwt.encode({"sid": 100, "cid": 10, "iat": 1, "exp": 2}, SIGNING_KEY, algorithm="HS256")

    with pytest.raises(MalformedPayload) as exc:
        TokenCodec(SIGNING_KEY).decode(payload)

    assert "code" in str(exc.value)
    assert "name" in str(exc.value)


def test_decode_rejects_expiry_not_after_issue():
    ts = int(T0.timestamp())
    payload = jwt.encode(
        {"sid": 100, "cid": 10, "code": "CS101", "name": "Intro", "iat": ts, "exp": ts},
        SIGNING_KEY,
        algorithm="HS256",
    )

    with pytest.raises(MalformedPayload):
        TokenCodec(SIGNING_KEY).decode(payload)


def test_token_requires_expiry_after_issue():
    with pytest.raises(ValidationError):
        VerificationToken(
            session_id=1, course_id=1, course_code="X", course_name="X", issued_at=T0, expires_at=T0
        )


def test_codec_requires_a_key():
    with pytest.raises(ValueError):
        TokenCodec("")
