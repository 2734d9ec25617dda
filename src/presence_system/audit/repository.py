from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import PresenceState
from .model import AuditLogEntry, DepartmentStats


class AuditLogRepository(Protocol):
    """Append-only transition history.

    Every list is ordered newest first: timestamp DESC, then insertion id DESC.
    """

    def append(
        self,
        *,
        student_id: str,
        student_name: str,
        department: str,
        action: PresenceState,
        timestamp: datetime,
    ) -> AuditLogEntry:
        raise NotImplementedError

    def list_page(self, *, limit: int, offset: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_for_student(self, student_id: str, *, limit: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_since(self, cutoff: datetime) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def latest_for_student(self, student_id: str) -> Optional[AuditLogEntry]:
        raise NotImplementedError

    def latest_actions(self) -> Dict[str, PresenceState]:
        """Action of the newest entry per student (used by the startup reconcile pass)."""

        raise NotImplementedError

    def count_actions_between(self, start: datetime, end: datetime) -> Dict[PresenceState, int]:
        raise NotImplementedError

    def department_counts_between(self, start: datetime, end: datetime) -> Sequence[DepartmentStats]:
        raise NotImplementedError

    def delete_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError
