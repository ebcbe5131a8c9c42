"""Encode/decode the verification payload carried by a check-in QR code.

The payload is a signed JWT. Its claims are readable without the key, so a
scanner can check expiry locally (``peek``); the server verifies the
signature before trusting it (``decode``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import jwt

from ..common.datetime_utils import ensure_utc, now_utc
from ..core.constants import TOKEN_ALGORITHM
from ..core.exceptions import MalformedPayload, ValidationError
from ..sessions.model import Course, Session
from .model import VerificationToken

_REQUIRED_CLAIMS = ("sid", "cid", "code", "name", "iat", "exp")


def _ts(value: datetime) -> int:
    return int(ensure_utc(value).timestamp())


def _from_ts(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class TokenCodec:
    def __init__(self, signing_key: str, *, algorithm: str = TOKEN_ALGORITHM):
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self._key = signing_key
        self._algorithm = algorithm

    def build(
        self,
        session: Session,
        course: Course,
        expires_at: datetime,
        *,
        issued_at: Optional[datetime] = None,
    ) -> VerificationToken:
        issued_at = issued_at or now_utc()
        return VerificationToken(
            session_id=int(session.session_id),
            course_id=int(course.course_id),
            course_code=course.code,
            course_name=course.name,
            issued_at=ensure_utc(issued_at).replace(microsecond=0),
            expires_at=ensure_utc(expires_at).replace(microsecond=0),
        )

    def encode(
        self,
        session: Session,
        course: Course,
        expires_at: datetime,
        *,
        issued_at: Optional[datetime] = None,
    ) -> str:
        return self.dump(self.build(session, course, expires_at, issued_at=issued_at))

    def dump(self, token: VerificationToken) -> str:
        claims = {
            "sid": token.session_id,
            "cid": token.course_id,
            "code": token.course_code,
            "name": token.course_name,
            "iat": _ts(token.issued_at),
            "exp": _ts(token.expires_at),
        }
        return jwt.encode(claims, self._key, algorithm=self._algorithm)

    def decode(self, payload: str) -> VerificationToken:
        """Verify the signature and return the token. Expiry is left to the caller."""
        claims = self._claims(
            payload,
            key=self._key,
            algorithms=[self._algorithm],
            options={"verify_exp": False, "verify_iat": False},
        )
        return self._to_token(claims)

    def peek(self, payload: str) -> VerificationToken:
        """Read the claims without verifying the signature (scanner side)."""
        claims = self._claims(payload, options={"verify_signature": False})
        return self._to_token(claims)

    @staticmethod
    def _claims(payload: str, **kwargs) -> Mapping[str, Any]:
        if not isinstance(payload, str) or not payload.strip():
            raise MalformedPayload("Verification payload is empty")
        try:
            return jwt.decode(payload.strip(), **kwargs)
        except jwt.InvalidTokenError as exc:
            raise MalformedPayload(f"Verification payload is invalid: {exc}") from exc

    @staticmethod
    def _to_token(claims: Mapping[str, Any]) -> VerificationToken:
        missing = [c for c in _REQUIRED_CLAIMS if claims.get(c) in (None, "")]
        if missing:
            raise MalformedPayload(f"Verification payload is missing: {', '.join(missing)}")
        try:
            return VerificationToken(
                session_id=int(claims["sid"]),
                course_id=int(claims["cid"]),
                course_code=str(claims["code"]),
                course_name=str(claims["name"]),
                issued_at=_from_ts(claims["iat"]),
                expires_at=_from_ts(claims["exp"]),
            )
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedPayload(f"Verification payload is invalid: {exc}") from exc
        except ValidationError as exc:
            raise MalformedPayload(str(exc)) from exc
