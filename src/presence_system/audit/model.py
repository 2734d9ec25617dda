from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict

from ..core.enums import PresenceState


@dataclass(frozen=True)
class AuditLogEntry:
    """Permanent record of one transition. Never updated once written."""

    log_id: int
    student_id: str
    student_name: str
    department: str
    action: PresenceState
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_id": self.log_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "department": self.department,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DailyStats:
    day: date
    checked_in: int
    checked_out: int

    def to_dict(self) -> Dict[str, Any]:
        return {"in": self.checked_in, "out": self.checked_out, "date": self.day.strftime("%Y-%m-%d")}


@dataclass(frozen=True)
class DepartmentStats:
    department: str
    checked_in: int
    checked_out: int

    def to_dict(self) -> Dict[str, Any]:
        return {"department": self.department, "in": self.checked_in, "out": self.checked_out}
