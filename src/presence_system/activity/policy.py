from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import DEFAULT_FEED_RETENTION_HOURS, DEFAULT_WEEKLY_RETENTION_MULTIPLIER


@dataclass(frozen=True)
class EvictionPolicy:
    """Single retention setting behind every activity feed eviction path.

    - TTL: each entry expires `retention_hours` after it is written.
    - Weekly sweep: removes entries older than `retention_hours * weekly_multiplier`.
    - Age-based manual clears default to `retention_hours`.
    The daily job ignores age and wipes the whole feed.
    """

    retention_hours: int = DEFAULT_FEED_RETENTION_HOURS
    weekly_multiplier: int = DEFAULT_WEEKLY_RETENTION_MULTIPLIER

    def __post_init__(self):
        if self.retention_hours <= 0:
            raise ValueError("retention_hours must be positive")
        if self.weekly_multiplier <= 0:
            raise ValueError("weekly_multiplier must be positive")

    @property
    def ttl(self) -> timedelta:
        return timedelta(hours=self.retention_hours)

    @property
    def weekly_sweep_hours(self) -> int:
        return self.retention_hours * self.weekly_multiplier

    def expires_at(self, created: datetime) -> datetime:
        return created + self.ttl

    def weekly_cutoff(self, now: datetime) -> datetime:
        return now - timedelta(hours=self.weekly_sweep_hours)
