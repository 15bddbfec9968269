import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db"),
}

# Check-in window and code settings
SESSION_WINDOW_MINUTES = int(os.getenv("SESSION_WINDOW_MINUTES", "15"))
MAX_SESSION_WINDOW_MINUTES = int(os.getenv("MAX_SESSION_WINDOW_MINUTES", "120"))
SESSION_CODE_LENGTH = int(os.getenv("SESSION_CODE_LENGTH", "6"))
CODE_GENERATION_ATTEMPTS = int(os.getenv("CODE_GENERATION_ATTEMPTS", "5"))

# Number of reverse proxies whose X-Forwarded-For is trusted for the caller origin.
TRUSTED_PROXY_HOPS = int(os.getenv("TRUSTED_PROXY_HOPS", "0"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_DIR = os.getenv("LOG_DIR", "logs")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
