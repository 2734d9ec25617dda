from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..audit.repository import AuditLogRepository
from ..common.validators import normalize_student_id, require_int_in_range, require_non_empty
from ..core.enums import ChangeKind, PresenceState
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..sync.broadcaster import SyncBroadcaster
from .model import PresenceCounts, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Read side of the presence store plus first-time registration.

    Status changes never go through here; TransitionService owns them.
    """

    def __init__(
        self,
        students: StudentRepository,
        *,
        audit: Optional[AuditLogRepository] = None,
        broadcaster: Optional[SyncBroadcaster] = None,
    ):
        self._students = students
        self._audit = audit
        self._broadcaster = broadcaster

    def register(
        self,
        *,
        student_id: str,
        name: str,
        department: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        semester=None,
        image_url: Optional[str] = None,
        now: datetime | None = None,
    ) -> Student:
        now = now or now_local()
        sid = normalize_student_id(student_id)
        name = require_non_empty(name, "Name")
        department = require_non_empty(department, "Department")
        if len(name) > 100:
            raise ValidationError("Name cannot exceed 100 characters")
        if len(department) > 50:
            raise ValidationError("Department name cannot exceed 50 characters")
        if semester not in (None, ""):
            semester = require_int_in_range(semester, "Semester", minimum=1, maximum=12)
        else:
            semester = None

        if self._students.get_by_id(sid):
            raise ConflictError("Student with this ID already exists")

        # Ids can collect history through add_activity before they are registered.
        latest = self._audit.latest_for_student(sid) if self._audit else None
        status = latest.action if latest else PresenceState.OUT
        updated_at = max(now, latest.timestamp) if latest else now

        student = Student(
            student_id=sid,
            name=name,
            department=department,
            status=status,
            email=(email or "").strip().lower() or None,
            phone=(phone or "").strip() or None,
            semester=semester,
            image_url=(image_url or "").strip() or None,
            version=0,
            created_at=now,
            updated_at=updated_at,
        )
        self._students.create_student(student)
        logger.info("Registered student %s (%s) as %s", sid, department, status.value)
        if self._broadcaster:
            self._broadcaster.notify(ChangeKind.PRESENCE, student_id=sid)
        return student

    def get(self, student_id: str) -> Student:
        sid = normalize_student_id(student_id)
        student = self._students.get_by_id(sid)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_all(self) -> Sequence[Student]:
        return self._students.list_all()

    def list_by_status(self, status: str) -> Sequence[Student]:
        try:
            state = PresenceState(str(status).lower())
        except ValueError:
            raise ValidationError('Status must be either "in" or "out"') from None
        return self._students.list_by_status(state)

    def presence_counts(self) -> PresenceCounts:
        counts = self._students.count_by_status()
        return PresenceCounts(
            inside=int(counts.get(PresenceState.IN, 0)),
            outside=int(counts.get(PresenceState.OUT, 0)),
        )
