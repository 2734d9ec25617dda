from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from ..core.enums import PresenceState
from ..students.model import PersonSnapshot


@dataclass(frozen=True)
class ActivityFeedEntry:
    """Disposable display copy of a transition; expires at `expires_at`."""

    activity_id: int
    student_id: str
    student: PersonSnapshot
    action: PresenceState
    timestamp: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "student_id": self.student_id,
            "student": self.student.to_dict(),
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


@dataclass(frozen=True)
class ActivityStats:
    today_total: int
    today_check_ins: int
    today_check_outs: int
    overall_total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "today": {
                "total": self.today_total,
                "checkIns": self.today_check_ins,
                "checkOuts": self.today_check_outs,
            },
            "overall": {"total": self.overall_total},
        }
