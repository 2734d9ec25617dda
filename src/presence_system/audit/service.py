from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import normalize_student_id, require_int_in_range
from ..core.constants import (
    DEFAULT_AUDIT_RETENTION_DAYS,
    DEFAULT_LOG_PAGE_LIMIT,
    DEFAULT_RECENT_LOG_HOURS,
    DEFAULT_STUDENT_LOG_LIMIT,
)
from ..core.enums import PresenceState
from ..core.exceptions import ValidationError
from .model import AuditLogEntry, DailyStats, DepartmentStats
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class AuditLogService:
    """Read models over the audit log plus the operator-triggered age purge."""

    def __init__(self, audit: AuditLogRepository, *, default_retention_days: int = DEFAULT_AUDIT_RETENTION_DAYS):
        self._audit = audit
        self._default_retention_days = int(default_retention_days)

    def list_logs(self, *, limit=DEFAULT_LOG_PAGE_LIMIT, offset=0) -> Sequence[AuditLogEntry]:
        limit = require_int_in_range(limit, "Limit", minimum=1, maximum=1000)
        offset = require_int_in_range(offset, "Offset", minimum=0, maximum=10**9)
        return self._audit.list_page(limit=limit, offset=offset)

    def logs_for_student(self, student_id: str, *, limit=DEFAULT_STUDENT_LOG_LIMIT) -> Sequence[AuditLogEntry]:
        limit = require_int_in_range(limit, "Limit", minimum=1, maximum=1000)
        return self._audit.list_for_student(normalize_student_id(student_id), limit=limit)

    def recent(self, *, hours=DEFAULT_RECENT_LOG_HOURS, now: datetime | None = None) -> Sequence[AuditLogEntry]:
        now = now or now_local()
        hours = require_int_in_range(hours, "Hours", minimum=1, maximum=24 * 366)
        return self._audit.list_since(now - timedelta(hours=hours))

    def stats_for_day(self, day: date) -> DailyStats:
        start, end = _day_bounds(day)
        counts = self._audit.count_actions_between(start, end)
        return DailyStats(
            day=day,
            checked_in=int(counts.get(PresenceState.IN, 0)),
            checked_out=int(counts.get(PresenceState.OUT, 0)),
        )

    def today_stats(self, *, now: datetime | None = None) -> DailyStats:
        return self.stats_for_day((now or now_local()).date())

    def stats_for_date(self, value: str) -> DailyStats:
        try:
            day = parse_iso_date(value)
        except (TypeError, ValueError):
            raise ValidationError("Date must be in YYYY-MM-DD format") from None
        return self.stats_for_day(day)

    def department_stats(self, *, start: str, end: str) -> Sequence[DepartmentStats]:
        try:
            start_day = parse_iso_date(start)
            end_day = parse_iso_date(end)
        except (TypeError, ValueError):
            raise ValidationError("Date must be in YYYY-MM-DD format") from None
        if end_day < start_day:
            raise ValidationError("End date must not be before start date")
        range_start, _ = _day_bounds(start_day)
        _, range_end = _day_bounds(end_day)
        return self._audit.department_counts_between(range_start, range_end)

    def purge_older_than(self, *, days=None, now: datetime | None = None) -> int:
        now = now or now_local()
        days = self._default_retention_days if days in (None, "") else days
        days = require_int_in_range(days, "Days", minimum=1, maximum=3650)
        deleted = self._audit.delete_older_than(now - timedelta(days=days))
        logger.warning("Audit log purge removed %s entries older than %s days", deleted, days)
        return deleted
