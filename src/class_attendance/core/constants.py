"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WINDOW_MINUTES = 5
DEFAULT_LIST_LIMIT = 200
TOKEN_ALGORITHM = "HS256"
QR_BOX_SIZE = 10
QR_BORDER = 2
SYSTEM_REVIEWER_ID = 0
