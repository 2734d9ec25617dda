from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import PresenceState
from .model import Student


class StudentRepository(Protocol):
    """Presence store. Ids passed in are already normalized (upper-case)."""

    def get_by_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def get_for_update(self, student_id: str) -> Optional[Student]:
        """Read a record and hold its row lock until the enclosing transaction ends."""

        raise NotImplementedError

    def create_student(self, student: Student) -> None:
        """Insert a new record; raises ConflictError when the id already exists."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        student_id: str,
        status: PresenceState,
        updated_at: datetime,
        expected_version: int,
    ) -> bool:
        """Compare-and-set: only writes when the stored version still equals expected_version."""

        raise NotImplementedError

    def list_by_status(self, status: PresenceState) -> Sequence[Student]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def count_by_status(self) -> Dict[PresenceState, int]:
        raise NotImplementedError
