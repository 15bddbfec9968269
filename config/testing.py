import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_test"),
}

SESSION_WINDOW_MINUTES = 15
MAX_SESSION_WINDOW_MINUTES = 120
SESSION_CODE_LENGTH = 6
CODE_GENERATION_ATTEMPTS = 5
TRUSTED_PROXY_HOPS = 0

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
