from __future__ import annotations

import io
from datetime import timedelta

from flask import Flask, send_file

from ..common.datetime_utils import now_utc
from ..common.web import (
    current_user_id,
    instructor_required,
    json_body,
    jsonable,
    login_required,
    ok,
    optional_datetime,
)
from ..core.exceptions import ValidationError
from ..container import Container
from ..tokens.model import VerificationToken
from ..tokens.qr import render_qr_png


def register(app: Flask, container: Container) -> None:
    manager = container.session_manager
    rotation = container.rotation

    def _token_json(token: VerificationToken) -> dict:
        data = jsonable(token)
        data["payload"] = manager.payload_for(token)
        data["seconds_remaining"] = token.seconds_remaining(now_utc())
        return data

    def _duration(data: dict):
        minutes = data.get("duration_minutes")
        if minutes in (None, ""):
            return None
        try:
            return timedelta(minutes=float(minutes))
        except (TypeError, ValueError, OverflowError):
            raise ValidationError("duration_minutes must be a number")

    @app.route("/api/sessions", methods=["POST"], endpoint="create_session")
    @instructor_required
    def create_session():
        data = json_body()
        starts_at = optional_datetime(data, "starts_at") or now_utc()
        session_obj = manager.create_session(
            course_id=data.get("course_id"),
            instructor_id=current_user_id(),
            starts_at=starts_at,
            ends_at=optional_datetime(data, "ends_at"),
            location=data.get("location"),
            beacon_enabled=bool(data.get("beacon_enabled", True)),
        )
        return ok(session_obj, 201)

    @app.route("/api/sessions/<int:session_id>", methods=["GET"], endpoint="get_session")
    @login_required
    def get_session(session_id: int):
        return ok(manager.get_session(session_id))

    @app.route("/api/sessions/<int:session_id>/window", methods=["POST"], endpoint="open_window")
    @instructor_required
    def open_window(session_id: int):
        token = manager.open_window(session_id, _duration(json_body()))
        rotation.watch(session_id, token.expires_at)
        return ok(_token_json(token), 201)

    @app.route("/api/sessions/<int:session_id>/window/refresh", methods=["POST"], endpoint="refresh_window")
    @instructor_required
    def refresh_window(session_id: int):
        token = manager.refresh(session_id)
        rotation.watch(session_id, token.expires_at)
        return ok(_token_json(token))

    @app.route("/api/sessions/<int:session_id>/window", methods=["DELETE"], endpoint="close_window")
    @instructor_required
    def close_window(session_id: int):
        rotation.cancel(session_id)
        return ok(manager.close_window(session_id))

    @app.route("/api/sessions/<int:session_id>/token", methods=["GET"], endpoint="current_token")
    @instructor_required
    def current_token(session_id: int):
        return ok(_token_json(manager.current_token(session_id)))

    @app.route("/api/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="session_qr")
    @instructor_required
    def session_qr(session_id: int):
        payload = manager.payload_for(manager.current_token(session_id))
        return send_file(io.BytesIO(render_qr_png(payload)), mimetype="image/png")

    @app.route("/api/sessions/<int:session_id>/end", methods=["POST"], endpoint="end_session")
    @instructor_required
    def end_session(session_id: int):
        rotation.cancel(session_id)
        return ok(manager.end_session(session_id))

    @app.route("/api/sessions/close-expired", methods=["POST"], endpoint="close_expired_windows")
    @instructor_required
    def close_expired_windows():
        return ok({"closed": manager.close_expired()})

    @app.route("/api/sessions/<int:session_id>/roster", methods=["GET"], endpoint="session_roster")
    @instructor_required
    def session_roster(session_id: int):
        return ok(container.roster_service.session_roster_ui(session_id))
