"""Example: drive the service layer directly (no Flask).

Controllers stay thin; the rules live in the services wired by the container.
"""

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from class_attendance.container import build_container


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        signing_key=settings.TOKEN_SIGNING_KEY or settings.SECRET_KEY,
    )

    token = container.session_manager.open_window(1)
    print("payload:", container.session_manager.payload_for(token))
    print(container.roster_service.session_roster_ui(1))


if __name__ == "__main__":
    main()
