from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Sequence

from ..core.enums import PresenceState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..students.model import PersonSnapshot
from .model import ActivityFeedEntry
from .repository import ActivityFeedRepository


def _to_entry(r: Dict[str, Any]) -> ActivityFeedEntry:
    raw = r.get("student_snapshot") or "{}"
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    data = json.loads(raw) if isinstance(raw, str) else dict(raw)
    return ActivityFeedEntry(
        activity_id=int(r["activity_id"]),
        student_id=r["student_id"],
        student=PersonSnapshot.from_dict(r["student_id"], data),
        action=PresenceState(r["action"]),
        timestamp=r["timestamp"],
        expires_at=r["expires_at"],
    )


class MySQLActivityFeedRepository(ActivityFeedRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        student_id: str,
        student: PersonSnapshot,
        action: PresenceState,
        timestamp: datetime,
        expires_at: datetime,
    ) -> ActivityFeedEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_feed(student_id, student_snapshot, action, timestamp, expires_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (student_id, json.dumps(student.to_dict(), ensure_ascii=False), action.value, timestamp, expires_at),
            )
            return ActivityFeedEntry(
                activity_id=int(cur.lastrowid),
                student_id=student_id,
                student=student,
                action=action,
                timestamp=timestamp,
                expires_at=expires_at,
            )

    def list_recent(self, *, limit: int, now: datetime) -> Sequence[ActivityFeedEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT activity_id, student_id, student_snapshot, action, timestamp, expires_at
                FROM activity_feed
                WHERE expires_at > %s
                ORDER BY timestamp DESC, activity_id DESC
                LIMIT %s
                """,
                (now, int(limit)),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def count_actions_between(self, start: datetime, end: datetime, *, now: datetime) -> Dict[PresenceState, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT action, COUNT(*) AS n
                FROM activity_feed
                WHERE timestamp >= %s AND timestamp < %s AND expires_at > %s
                GROUP BY action
                """,
                (start, end, now),
            )
            counts = {state: 0 for state in PresenceState}
            for r in fetchall(cur):
                counts[PresenceState(r["action"])] = int(r["n"])
            return counts

    def count_live(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM activity_feed WHERE expires_at > %s", (now,))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def delete_older_than(self, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM activity_feed WHERE timestamp < %s", (cutoff,))
            return int(cur.rowcount)

    def delete_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM activity_feed")
            return int(cur.rowcount)
