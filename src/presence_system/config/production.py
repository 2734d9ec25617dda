import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "presence_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

FEED_RETENTION_HOURS = int(os.getenv("FEED_RETENTION_HOURS", "24"))
WEEKLY_RETENTION_MULTIPLIER = int(os.getenv("WEEKLY_RETENTION_MULTIPLIER", "7"))
AUDIT_RETENTION_DAYS = int(os.getenv("AUDIT_RETENTION_DAYS", "30"))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "1")))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata")
DAILY_CLEANUP_AT = os.getenv("DAILY_CLEANUP_AT", "00:00")
WEEKLY_CLEANUP_AT = os.getenv("WEEKLY_CLEANUP_AT", "SUN 02:00")
MANUAL_CLEANUP_TIMEOUT_SECONDS = float(os.getenv("MANUAL_CLEANUP_TIMEOUT_SECONDS", "30"))

SYNC_POLL_INTERVAL_SECONDS = int(os.getenv("SYNC_POLL_INTERVAL_SECONDS", "5"))
TOGGLE_MAX_RETRIES = int(os.getenv("TOGGLE_MAX_RETRIES", "3"))
RECONCILE_ON_STARTUP = bool(int(os.getenv("RECONCILE_ON_STARTUP", "1")))
