import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance"),
}

# Signs the QR verification tokens; falls back to SECRET_KEY when unset.
TOKEN_SIGNING_KEY = os.getenv("TOKEN_SIGNING_KEY", "")
CHECKIN_WINDOW_MINUTES = int(os.getenv("CHECKIN_WINDOW_MINUTES", "5"))
AUTO_REFRESH_TOKENS = bool(int(os.getenv("AUTO_REFRESH_TOKENS", "1")))
# Detections older than this do not count as presence; 0 disables beacon check-ins.
BEACON_MAX_AGE_SECONDS = int(os.getenv("BEACON_MAX_AGE_SECONDS", "120"))

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
