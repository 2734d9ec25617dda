from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PresenceState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AuditLogEntry, DepartmentStats
from .repository import AuditLogRepository

_SELECT = "SELECT log_id, student_id, student_name, department, action, timestamp FROM audit_logs"
_NEWEST_FIRST = "ORDER BY timestamp DESC, log_id DESC"


def _to_entry(r: Dict[str, Any]) -> AuditLogEntry:
    return AuditLogEntry(
        log_id=int(r["log_id"]),
        student_id=r["student_id"],
        student_name=r["student_name"],
        department=r["department"],
        action=PresenceState(r["action"]),
        timestamp=r["timestamp"],
    )


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        student_id: str,
        student_name: str,
        department: str,
        action: PresenceState,
        timestamp: datetime,
    ) -> AuditLogEntry:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(student_id, student_name, department, action, timestamp)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (student_id, student_name, department, action.value, timestamp),
            )
            return AuditLogEntry(
                log_id=int(cur.lastrowid),
                student_id=student_id,
                student_name=student_name,
                department=department,
                action=action,
                timestamp=timestamp,
            )

    def list_page(self, *, limit: int, offset: int) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} {_NEWEST_FIRST} LIMIT %s OFFSET %s", (int(limit), int(offset)))
            return [_to_entry(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: str, *, limit: int) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE student_id=%s {_NEWEST_FIRST} LIMIT %s", (student_id, int(limit)))
            return [_to_entry(r) for r in fetchall(cur)]

    def list_since(self, cutoff: datetime) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE timestamp >= %s {_NEWEST_FIRST}", (cutoff,))
            return [_to_entry(r) for r in fetchall(cur)]

    def latest_for_student(self, student_id: str) -> Optional[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE student_id=%s {_NEWEST_FIRST} LIMIT 1", (student_id,))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def latest_actions(self) -> Dict[str, PresenceState]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.student_id, a.action
                FROM audit_logs a
                JOIN (
                    SELECT student_id, MAX(timestamp) AS ts
                    FROM audit_logs
                    GROUP BY student_id
                ) latest ON latest.student_id = a.student_id AND latest.ts = a.timestamp
                ORDER BY a.student_id, a.log_id
                """
            )
            out: Dict[str, PresenceState] = {}
            # Rows sharing the max timestamp arrive in log_id order; the last one wins.
            for r in fetchall(cur):
                out[r["student_id"]] = PresenceState(r["action"])
            return out

    def count_actions_between(self, start: datetime, end: datetime) -> Dict[PresenceState, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT action, COUNT(*) AS n
                FROM audit_logs
                WHERE timestamp >= %s AND timestamp < %s
                GROUP BY action
                """,
                (start, end),
            )
            counts = {state: 0 for state in PresenceState}
            for r in fetchall(cur):
                counts[PresenceState(r["action"])] = int(r["n"])
            return counts

    def department_counts_between(self, start: datetime, end: datetime) -> Sequence[DepartmentStats]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT department,
                       SUM(action = 'in') AS n_in,
                       SUM(action = 'out') AS n_out
                FROM audit_logs
                WHERE timestamp >= %s AND timestamp < %s
                GROUP BY department
                ORDER BY department ASC
                """,
                (start, end),
            )
            return [
                DepartmentStats(
                    department=r["department"],
                    checked_in=int(r.get("n_in") or 0),
                    checked_out=int(r.get("n_out") or 0),
                )
                for r in fetchall(cur)
            ]

    def delete_older_than(self, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM audit_logs WHERE timestamp < %s", (cutoff,))
            return int(cur.rowcount)
