from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .approvals.controller import register as register_approvals
from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEFAULT_WINDOW_MINUTES
from .core.exceptions import AuthorizationError, DomainError, NotFound, StateConflict, ValidationError
from .database.bootstrap import apply_schema, list_tables
from .sessions.controller import register as register_sessions

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, StateConflict):
        return 409
    return 400


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=logging.DEBUG if app.config["DEBUG"] else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        app.logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            app.logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            signing_key=getattr(settings, "TOKEN_SIGNING_KEY", None) or app.secret_key,
            window_minutes=int(getattr(settings, "CHECKIN_WINDOW_MINUTES", DEFAULT_WINDOW_MINUTES)),
            auto_refresh=bool(getattr(settings, "AUTO_REFRESH_TOKENS", False)),
            beacon_max_age_seconds=int(getattr(settings, "BEACON_MAX_AGE_SECONDS", 0)),
        )
        container.rotation.resume()

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), _status_for(exc)

    register_sessions(app, container)
    register_attendance(app, container)
    register_approvals(app, container)

    app.extensions["class_attendance"] = container
    return app
