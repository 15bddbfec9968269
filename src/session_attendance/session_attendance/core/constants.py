"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_WINDOW_MINUTES = 15
MAX_SESSION_WINDOW_MINUTES = 120
DEFAULT_CODE_LENGTH = 6
QR_TOKEN_BYTES = 16
DEFAULT_CODE_ATTEMPTS = 5

# Unique keys declared in schema.sql.
UQ_SESSION_CODE = "uq_session_code"
UQ_ENROLLMENT_DATE = "uq_enrollment_date"
UQ_SESSION_ORIGIN = "uq_session_origin"
