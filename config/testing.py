import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance_test"),
}

TOKEN_SIGNING_KEY = "test-signing-key-0123456789abcdef"
CHECKIN_WINDOW_MINUTES = 5
AUTO_REFRESH_TOKENS = False
BEACON_MAX_AGE_SECONDS = 0

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
