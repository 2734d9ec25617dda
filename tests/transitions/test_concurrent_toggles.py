from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from presence_system.core.enums import PresenceState


def test_concurrent_toggles_apply_exactly_once_each(transitions, students, audit, feed):
    workers = 16
    start = threading.Barrier(workers)

    def scan(_):
        start.wait()
        return transitions.toggle("CS001")

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(scan, range(workers)))

    assert len(results) == workers
    assert len(audit.entries) == workers
    assert len(feed.entries) == workers
    # An even number of flips from OUT lands back on OUT.
    assert students.get_by_id("CS001").status is PresenceState.OUT
    assert students.get_by_id("CS001").version == workers

    actions = [e.action for e in sorted(audit.entries, key=lambda e: e.log_id)]
    for previous, current in zip(actions, actions[1:]):
        assert previous is not current


def test_toggles_on_different_students_do_not_interfere(transitions, students, audit):
    def scan(student_id):
        return transitions.toggle(student_id)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(scan, ["CS001", "EE001", "cs001", "ee001", "CS001"]))

    assert students.get_by_id("CS001").status is PresenceState.IN
    assert students.get_by_id("EE001").status is PresenceState.OUT
    assert len(audit.entries) == 5
