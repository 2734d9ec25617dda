import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "presence_db_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

FEED_RETENTION_HOURS = 24
WEEKLY_RETENTION_MULTIPLIER = 7
AUDIT_RETENTION_DAYS = 30

SCHEDULER_ENABLED = False
SCHEDULER_TIMEZONE = "Asia/Kolkata"
DAILY_CLEANUP_AT = "00:00"
WEEKLY_CLEANUP_AT = "SUN 02:00"
MANUAL_CLEANUP_TIMEOUT_SECONDS = 5.0

SYNC_POLL_INTERVAL_SECONDS = 5
TOGGLE_MAX_RETRIES = 3
RECONCILE_ON_STARTUP = False
