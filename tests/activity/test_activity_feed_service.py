from __future__ import annotations

from datetime import timedelta

import pytest

from presence_system.core.enums import ChangeKind, PresenceState
from presence_system.core.exceptions import ValidationError
from presence_system.students.model import PersonSnapshot


@pytest.fixture
def append_entry(feed, policy):
    def _append(timestamp, *, student_id="CS001", action=PresenceState.IN):
        return feed.append(
            student_id=student_id,
            student=PersonSnapshot(student_id=student_id, name="Asha Verma", department="CS"),
            action=action,
            timestamp=timestamp,
            expires_at=policy.expires_at(timestamp),
        )

    return _append


def test_list_recent_is_newest_first_and_limited(activity_service, append_entry, fixed_now):
    for minutes in range(5):
        append_entry(fixed_now + timedelta(minutes=minutes))

    recent = activity_service.list_recent(3, now=fixed_now + timedelta(minutes=10))

    assert [e.timestamp for e in recent] == [fixed_now + timedelta(minutes=m) for m in (4, 3, 2)]


def test_same_timestamp_orders_by_insertion(activity_service, append_entry, fixed_now):
    first = append_entry(fixed_now)
    second = append_entry(fixed_now, student_id="EE001")

    recent = activity_service.list_recent(now=fixed_now)

    assert [e.activity_id for e in recent] == [second.activity_id, first.activity_id]


def test_entries_expire_after_retention_window(transitions, activity_service, audit, fixed_now):
    transitions.toggle("CS001", now=fixed_now)

    assert len(activity_service.list_recent(now=fixed_now + timedelta(hours=23))) == 1
    assert activity_service.list_recent(now=fixed_now + timedelta(hours=25)) == []
    # The audit log keeps the transition.
    assert len(audit.entries) == 1


@pytest.mark.parametrize("limit", [0, 101, "ten"])
def test_list_recent_validates_limit(activity_service, limit):
    with pytest.raises(ValidationError):
        activity_service.list_recent(limit)


def test_clear_older_than_deletes_only_old_entries(activity_service, append_entry, feed, broadcaster, fixed_now):
    append_entry(fixed_now - timedelta(hours=2))
    recent = append_entry(fixed_now - timedelta(minutes=30))

    deleted = activity_service.clear_older_than(1, now=fixed_now)

    assert deleted == 1
    assert [e.activity_id for e in feed.entries] == [recent.activity_id]
    assert broadcaster.snapshot().kind is ChangeKind.EVICTION


def test_clear_older_than_defaults_to_retention(activity_service, append_entry, feed, fixed_now):
    append_entry(fixed_now - timedelta(hours=30))
    append_entry(fixed_now - timedelta(hours=3))

    assert activity_service.clear_older_than(now=fixed_now) == 1
    assert len(feed.entries) == 1


@pytest.mark.parametrize("hours", [0, 169, "x"])
def test_clear_older_than_validates_hours(activity_service, hours):
    with pytest.raises(ValidationError):
        activity_service.clear_older_than(hours)


def test_clear_all_is_idempotent(activity_service, append_entry, broadcaster, fixed_now):
    append_entry(fixed_now)
    append_entry(fixed_now)

    assert activity_service.clear_all() == 2
    version = broadcaster.snapshot().version
    assert activity_service.clear_all() == 0
    assert broadcaster.snapshot().version == version


def test_stats_count_today_and_live_entries(activity_service, append_entry, fixed_now):
    append_entry(fixed_now - timedelta(hours=1), action=PresenceState.IN)
    append_entry(fixed_now - timedelta(minutes=30), action=PresenceState.OUT)
    append_entry(fixed_now - timedelta(minutes=10), action=PresenceState.IN)
    append_entry(fixed_now - timedelta(hours=12))

    stats = activity_service.stats(now=fixed_now)

    assert stats.to_dict() == {
        "today": {"total": 3, "checkIns": 2, "checkOuts": 1},
        "overall": {"total": 4},
    }
