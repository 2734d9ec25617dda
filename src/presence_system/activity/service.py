from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_int_in_range
from ..core.constants import DEFAULT_RECENT_ACTIVITY_LIMIT, MAX_CLEAR_OLDER_THAN_HOURS, MAX_RECENT_ACTIVITY_LIMIT
from ..core.enums import ChangeKind, PresenceState
from ..sync.broadcaster import SyncBroadcaster
from .model import ActivityFeedEntry, ActivityStats
from .policy import EvictionPolicy
from .repository import ActivityFeedRepository

logger = logging.getLogger(__name__)


class ActivityFeedService:
    """Reads and manual clears over the activity feed.

    Writes come from TransitionService; scheduled evictions from EvictionScheduler.
    """

    def __init__(
        self,
        feed: ActivityFeedRepository,
        *,
        policy: EvictionPolicy | None = None,
        broadcaster: Optional[SyncBroadcaster] = None,
    ):
        self._feed = feed
        self._policy = policy or EvictionPolicy()
        self._broadcaster = broadcaster

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    def list_recent(self, limit=DEFAULT_RECENT_ACTIVITY_LIMIT, *, now: datetime | None = None) -> Sequence[ActivityFeedEntry]:
        now = now or now_local()
        limit = require_int_in_range(limit, "Limit", minimum=1, maximum=MAX_RECENT_ACTIVITY_LIMIT)
        return self._feed.list_recent(limit=limit, now=now)

    def clear_older_than(self, hours=None, *, now: datetime | None = None) -> int:
        now = now or now_local()
        hours = self._policy.retention_hours if hours in (None, "") else hours
        hours = require_int_in_range(hours, "Hours", minimum=1, maximum=MAX_CLEAR_OLDER_THAN_HOURS)
        deleted = self._feed.delete_older_than(now - timedelta(hours=hours))
        logger.info("Cleared %s activities older than %s hours", deleted, hours)
        self._announce(deleted, scope=f"older_than_{hours}h")
        return deleted

    def clear_all(self) -> int:
        deleted = self._feed.delete_all()
        logger.info("Cleared all activities, deleted %s records", deleted)
        self._announce(deleted, scope="all")
        return deleted

    def stats(self, *, now: datetime | None = None) -> ActivityStats:
        now = now or now_local()
        start = datetime.combine(now.date(), time.min)
        counts = self._feed.count_actions_between(start, start + timedelta(days=1), now=now)
        check_ins = int(counts.get(PresenceState.IN, 0))
        check_outs = int(counts.get(PresenceState.OUT, 0))
        return ActivityStats(
            today_total=check_ins + check_outs,
            today_check_ins=check_ins,
            today_check_outs=check_outs,
            overall_total=self._feed.count_live(now=now),
        )

    def _announce(self, deleted: int, *, scope: str) -> None:
        if deleted and self._broadcaster:
            self._broadcaster.notify(ChangeKind.EVICTION, deleted=deleted, scope=scope)
