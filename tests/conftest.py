from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

import pytest

from presence_system.activity.model import ActivityFeedEntry
from presence_system.activity.policy import EvictionPolicy
from presence_system.activity.service import ActivityFeedService
from presence_system.audit.model import AuditLogEntry, DepartmentStats
from presence_system.audit.service import AuditLogService
from presence_system.core.enums import PresenceState
from presence_system.core.exceptions import ConflictError
from presence_system.students.model import Student
from presence_system.students.service import StudentService
from presence_system.sync.broadcaster import SyncBroadcaster
from presence_system.transitions.service import TransitionService


class InMemoryStudents:
    def __init__(self, students=()):
        self._lock = threading.Lock()
        self._by_id: Dict[str, Student] = {s.student_id: s for s in students}

    def get_by_id(self, student_id: str) -> Optional[Student]:
        with self._lock:
            return self._by_id.get(student_id)

    def get_for_update(self, student_id: str) -> Optional[Student]:
        return self.get_by_id(student_id)

    def create_student(self, student: Student) -> None:
        with self._lock:
            if student.student_id in self._by_id:
                raise ConflictError("Student with this ID already exists")
            self._by_id[student.student_id] = student

    def update_status(self, *, student_id, status, updated_at, expected_version) -> bool:
        with self._lock:
            current = self._by_id.get(student_id)
            if current is None or current.version != expected_version:
                return False
            self._by_id[student_id] = replace(current, status=status, updated_at=updated_at, version=current.version + 1)
            return True

    def list_by_status(self, status):
        with self._lock:
            return [s for s in self._by_id.values() if s.status is status]

    def list_all(self):
        with self._lock:
            return list(self._by_id.values())

    def count_by_status(self):
        with self._lock:
            counts = {state: 0 for state in PresenceState}
            for s in self._by_id.values():
                counts[s.status] += 1
            return counts


class InMemoryAudit:
    def __init__(self):
        self._lock = threading.Lock()
        self.entries: list[AuditLogEntry] = []
        self._next_id = 1

    def append(self, *, student_id, student_name, department, action, timestamp) -> AuditLogEntry:
        with self._lock:
            entry = AuditLogEntry(
                log_id=self._next_id,
                student_id=student_id,
                student_name=student_name,
                department=department,
                action=action,
                timestamp=timestamp,
            )
            self._next_id += 1
            self.entries.append(entry)
            return entry

    def _newest_first(self, items):
        return sorted(items, key=lambda e: (e.timestamp, e.log_id), reverse=True)

    def list_page(self, *, limit, offset):
        return self._newest_first(self.entries)[offset : offset + limit]

    def list_for_student(self, student_id, *, limit):
        return self._newest_first([e for e in self.entries if e.student_id == student_id])[:limit]

    def list_since(self, cutoff):
        return self._newest_first([e for e in self.entries if e.timestamp >= cutoff])

    def latest_for_student(self, student_id):
        items = self.list_for_student(student_id, limit=1)
        return items[0] if items else None

    def latest_actions(self):
        latest = {}
        for e in self._newest_first(self.entries):
            latest.setdefault(e.student_id, e.action)
        return latest

    def count_actions_between(self, start, end):
        counts = {state: 0 for state in PresenceState}
        for e in self.entries:
            if start <= e.timestamp < end:
                counts[e.action] += 1
        return counts

    def department_counts_between(self, start, end):
        by_dept: dict[str, list[int]] = {}
        for e in self.entries:
            if start <= e.timestamp < end:
                pair = by_dept.setdefault(e.department, [0, 0])
                pair[0 if e.action is PresenceState.IN else 1] += 1
        return [DepartmentStats(department=d, checked_in=i, checked_out=o) for d, (i, o) in sorted(by_dept.items())]

    def delete_older_than(self, cutoff):
        with self._lock:
            before = len(self.entries)
            self.entries = [e for e in self.entries if e.timestamp >= cutoff]
            return before - len(self.entries)


class InMemoryFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self.entries: list[ActivityFeedEntry] = []
        self._next_id = 1

    def append(self, *, student_id, student, action, timestamp, expires_at) -> ActivityFeedEntry:
        with self._lock:
            entry = ActivityFeedEntry(
                activity_id=self._next_id,
                student_id=student_id,
                student=student,
                action=action,
                timestamp=timestamp,
                expires_at=expires_at,
            )
            self._next_id += 1
            self.entries.append(entry)
            return entry

    def _live(self, now):
        return [e for e in self.entries if not e.is_expired(now)]

    def list_recent(self, *, limit, now):
        items = sorted(self._live(now), key=lambda e: (e.timestamp, e.activity_id), reverse=True)
        return items[:limit]

    def count_actions_between(self, start, end, *, now):
        counts = {state: 0 for state in PresenceState}
        for e in self._live(now):
            if start <= e.timestamp < end:
                counts[e.action] += 1
        return counts

    def count_live(self, *, now):
        return len(self._live(now))

    def delete_older_than(self, cutoff):
        with self._lock:
            before = len(self.entries)
            self.entries = [e for e in self.entries if e.timestamp >= cutoff]
            return before - len(self.entries)

    def delete_all(self):
        with self._lock:
            deleted = len(self.entries)
            self.entries = []
            return deleted


def make_student(student_id="CS001", *, status=PresenceState.OUT, name="Asha Verma", department="CS", updated_at=None):
    return Student(
        student_id=student_id,
        name=name,
        department=department,
        status=status,
        version=0,
        created_at=updated_at,
        updated_at=updated_at,
    )


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def students():
    return InMemoryStudents([make_student("CS001"), make_student("EE001", name="Priya Nair", department="EE")])


@pytest.fixture
def audit():
    return InMemoryAudit()


@pytest.fixture
def feed():
    return InMemoryFeed()


@pytest.fixture
def policy():
    return EvictionPolicy(retention_hours=24, weekly_multiplier=7)


@pytest.fixture
def broadcaster(fixed_now):
    return SyncBroadcaster(poll_interval=5, clock=lambda: fixed_now)


@pytest.fixture
def transitions(students, audit, feed, policy, broadcaster, fixed_now):
    return TransitionService(students, audit, feed, policy=policy, broadcaster=broadcaster, clock=lambda: fixed_now)


@pytest.fixture
def activity_service(feed, policy, broadcaster):
    return ActivityFeedService(feed, policy=policy, broadcaster=broadcaster)


@pytest.fixture
def student_service(students, audit, broadcaster):
    return StudentService(students, audit=audit, broadcaster=broadcaster)


@pytest.fixture
def audit_service(audit):
    return AuditLogService(audit, default_retention_days=30)


@pytest.fixture
def student_factory():
    return make_student
