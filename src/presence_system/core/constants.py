"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_FEED_RETENTION_HOURS = 24
DEFAULT_WEEKLY_RETENTION_MULTIPLIER = 7
DEFAULT_AUDIT_RETENTION_DAYS = 30

DEFAULT_RECENT_ACTIVITY_LIMIT = 10
MAX_RECENT_ACTIVITY_LIMIT = 100
MAX_CLEAR_OLDER_THAN_HOURS = 168

DEFAULT_LOG_PAGE_LIMIT = 100
DEFAULT_STUDENT_LOG_LIMIT = 50
DEFAULT_RECENT_LOG_HOURS = 24

DEFAULT_TOGGLE_MAX_RETRIES = 3
DEFAULT_SYNC_POLL_INTERVAL_SECONDS = 5
DEFAULT_MANUAL_CLEANUP_TIMEOUT_SECONDS = 30.0

DAILY_CLEANUP_JOB = "daily-activity-cleanup"
WEEKLY_CLEANUP_JOB = "weekly-activity-cleanup"

# students.student_id is VARCHAR(32)
MAX_STUDENT_ID_LENGTH = 32
