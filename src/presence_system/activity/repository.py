from __future__ import annotations

from datetime import datetime
from typing import Dict, Protocol, Sequence

from ..core.enums import PresenceState
from ..students.model import PersonSnapshot
from .model import ActivityFeedEntry


class ActivityFeedRepository(Protocol):
    """TTL-bearing feed storage, independent from the audit log.

    Reads never return entries whose `expires_at` has passed, even before a sweep removes them.
    """

    def append(
        self,
        *,
        student_id: str,
        student: PersonSnapshot,
        action: PresenceState,
        timestamp: datetime,
        expires_at: datetime,
    ) -> ActivityFeedEntry:
        raise NotImplementedError

    def list_recent(self, *, limit: int, now: datetime) -> Sequence[ActivityFeedEntry]:
        """Newest first: timestamp DESC, then insertion id DESC."""

        raise NotImplementedError

    def count_actions_between(self, start: datetime, end: datetime, *, now: datetime) -> Dict[PresenceState, int]:
        raise NotImplementedError

    def count_live(self, *, now: datetime) -> int:
        raise NotImplementedError

    def delete_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError

    def delete_all(self) -> int:
        raise NotImplementedError
