from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, Mapping, Optional, TypeVar, Union

from ..activity.model import ActivityFeedEntry
from ..activity.policy import EvictionPolicy
from ..activity.repository import ActivityFeedRepository
from ..audit.model import AuditLogEntry
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.validators import normalize_student_id, require_action, require_non_empty
from ..core.constants import DEFAULT_TOGGLE_MAX_RETRIES
from ..core.enums import ChangeKind, PresenceState
from ..core.exceptions import ConflictError, NotFoundError, PartialWriteError, TransientStoreError, ValidationError
from ..students.model import PersonSnapshot, Student
from ..students.repository import StudentRepository
from ..sync.broadcaster import SyncBroadcaster
from .locks import KeyedLock

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TransitionResult:
    student: Student
    log_entry: AuditLogEntry
    activity: ActivityFeedEntry
    previous_status: PresenceState

    @property
    def message(self) -> str:
        verb = "checked in" if self.student.status is PresenceState.IN else "checked out"
        return f"Student {verb} successfully"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student": self.student.to_dict(),
            "logEntry": self.log_entry.to_dict(),
            "activity": self.activity.to_dict(),
            "previousStatus": self.previous_status.value,
        }


class TransitionService:
    """The only writer of presence state, audit log and activity feed.

    `atomic` opens one unit of work around the three writes of a transition. With a
    transactional store (MySQL) a failed log/feed insert rolls the presence update back;
    without one, presence stays changed and PartialWriteError carries the committed record.
    """

    def __init__(
        self,
        students: StudentRepository,
        audit: AuditLogRepository,
        feed: ActivityFeedRepository,
        *,
        policy: EvictionPolicy | None = None,
        broadcaster: Optional[SyncBroadcaster] = None,
        atomic: Optional[Callable[[], ContextManager[Any]]] = None,
        locks: KeyedLock | None = None,
        max_retries: int = DEFAULT_TOGGLE_MAX_RETRIES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._students = students
        self._audit = audit
        self._feed = feed
        self._policy = policy or EvictionPolicy()
        self._broadcaster = broadcaster
        self._transactional = atomic is not None
        self._atomic = atomic or nullcontext
        self._locks = locks or KeyedLock()
        self._max_retries = max(1, int(max_retries))
        self._clock = clock

    def toggle(self, student_id: str, *, now: datetime | None = None) -> TransitionResult:
        sid = normalize_student_id(student_id)

        with self._locks.hold(sid):
            result = None
            attempt = 0
            rewritten = False
            while attempt < self._max_retries:
                attempt += 1
                try:
                    result = self._try_toggle(sid, now or self._clock())
                except PartialWriteError as exc:
                    if exc.student is None and not rewritten:
                        # The whole unit rolled back; run it again once from the read.
                        rewritten = True
                        attempt -= 1
                        logger.warning("Toggle of %s rolled back after a failed %s insert, retrying", sid, exc.stage)
                        continue
                    if exc.student is not None:
                        self._notify(ChangeKind.PRESENCE, student_id=sid, action=exc.student.status.value)
                    raise
                if result is not None:
                    break
                logger.warning("Concurrent update on %s, retrying toggle (%s/%s)", sid, attempt, self._max_retries)

        if result is None:
            raise TransientStoreError(f"Could not update {sid}: record kept changing, try again")

        logger.info(
            "Student %s %s -> %s at %s",
            sid,
            result.previous_status.value,
            result.student.status.value,
            result.log_entry.timestamp.isoformat(),
        )
        self._notify(ChangeKind.PRESENCE, student_id=sid, action=result.student.status.value)
        return result

    def _try_toggle(self, sid: str, now: datetime) -> Optional[TransitionResult]:
        with self._atomic():
            current = self._students.get_for_update(sid)
            if not current:
                raise NotFoundError("Student not found")

            next_state = current.status.opposite()
            # Transition timestamps never go backwards for one student.
            if current.updated_at and now < current.updated_at:
                now = current.updated_at

            if not self._students.update_status(
                student_id=sid,
                status=next_state,
                updated_at=now,
                expected_version=current.version,
            ):
                return None

            updated = replace(current, status=next_state, updated_at=now, version=current.version + 1)
            snapshot = updated.snapshot()
            log_entry = self._append(
                "audit log",
                updated,
                lambda: self._audit.append(
                    student_id=sid,
                    student_name=snapshot.name,
                    department=snapshot.department,
                    action=next_state,
                    timestamp=now,
                ),
            )
            activity = self._append(
                "activity feed",
                updated,
                lambda: self._feed.append(
                    student_id=sid,
                    student=snapshot,
                    action=next_state,
                    timestamp=now,
                    expires_at=self._policy.expires_at(now),
                ),
            )

        return TransitionResult(student=updated, log_entry=log_entry, activity=activity, previous_status=current.status)

    def _append(self, stage: str, student: Student, insert: Callable[[], T]) -> T:
        """Run one log/feed insert.

        Inside a transaction a failed statement may already have rolled the unit back on the
        server (deadlock), so it is never retried in place: the error aborts the unit and
        `toggle` re-runs it from the read. Without a transaction the insert is retried once.
        """

        try:
            return insert()
        except Exception as first:
            if self._transactional:
                logger.error(
                    "%s insert failed for %s, rolling back the transition",
                    stage,
                    student.student_id,
                    exc_info=first,
                )
                raise PartialWriteError(
                    f"Failed to record {stage} entry for {student.student_id}",
                    student=None,
                    stage=stage,
                ) from first
            logger.warning("%s insert failed for %s, retrying once: %s", stage, student.student_id, first)
            try:
                return insert()
            except Exception as exc:
                logger.error(
                    "Partial write for %s: status=%s but %s insert failed (presence kept)",
                    student.student_id,
                    student.status.value,
                    stage,
                    exc_info=exc,
                )
                raise PartialWriteError(
                    f"Failed to record {stage} entry for {student.student_id}",
                    student=student,
                    stage=stage,
                ) from exc

    def add_activity(
        self,
        student_id: str,
        snapshot: Union[PersonSnapshot, Mapping[str, Any]],
        action,
        *,
        now: datetime | None = None,
    ) -> ActivityFeedEntry:
        """Record a transition already applied by a channel that does not own presence state.

        Writes one audit entry and one feed entry; presence is left untouched.
        """

        sid = normalize_student_id(student_id)
        state = require_action(action)
        if not isinstance(snapshot, PersonSnapshot):
            snapshot = PersonSnapshot.from_dict(sid, dict(snapshot or {}))
        snapshot = replace(
            snapshot,
            student_id=sid,
            name=require_non_empty(snapshot.name, "Student name"),
            department=require_non_empty(snapshot.department, "Department"),
        )
        if len(snapshot.name) > 100 or len(snapshot.department) > 50:
            raise ValidationError("Student name or department is too long")
        now = now or self._clock()

        with self._locks.hold(sid):
            with self._atomic():
                current = self._students.get_by_id(sid)
                if current and current.status is not state:
                    raise ConflictError(
                        f"Student {sid} is currently '{current.status.value}', cannot record '{state.value}'"
                    )
                self._audit.append(
                    student_id=sid,
                    student_name=snapshot.name,
                    department=snapshot.department,
                    action=state,
                    timestamp=now,
                )
                activity = self._feed.append(
                    student_id=sid,
                    student=snapshot,
                    action=state,
                    timestamp=now,
                    expires_at=self._policy.expires_at(now),
                )

        logger.info("Recorded external %s activity for %s", state.value, sid)
        self._notify(ChangeKind.ACTIVITY, student_id=sid, action=state.value)
        return activity

    def reconcile(self, *, now: datetime | None = None) -> int:
        """Align every presence record with its newest audit entry; returns the repaired count.

        Students without audit history are left alone (their logs may have been purged).
        """

        now = now or self._clock()
        latest = self._audit.latest_actions()
        repaired = 0

        for student in self._students.list_all():
            expected = latest.get(student.student_id)
            if expected is None or expected is student.status:
                continue

            sid = student.student_id
            with self._locks.hold(sid):
                with self._atomic():
                    current = self._students.get_for_update(sid)
                    newest = self._audit.latest_for_student(sid)
                    if not current or not newest or newest.action is current.status:
                        continue
                    if not self._students.update_status(
                        student_id=sid,
                        status=newest.action,
                        updated_at=max(now, current.updated_at or now),
                        expected_version=current.version,
                    ):
                        continue

            logger.warning(
                "Reconciled %s: status %s contradicted latest audit action %s",
                sid,
                current.status.value,
                newest.action.value,
            )
            repaired += 1

        if repaired:
            self._notify(ChangeKind.PRESENCE, reconciled=repaired)
        return repaired

    def _notify(self, kind: ChangeKind, **payload: Any) -> None:
        if self._broadcaster:
            self._broadcaster.notify(kind, **payload)
