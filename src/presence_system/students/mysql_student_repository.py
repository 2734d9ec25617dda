from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import PresenceState
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Student
from .repository import StudentRepository

_COLUMNS = """
    student_id, name, department, status, email, phone, semester, image_url,
    version, created_at, updated_at
"""

_DUPLICATE_ENTRY = 1062


def _to_student(r: Dict[str, Any]) -> Student:
    return Student(
        student_id=r["student_id"],
        name=r["name"],
        department=r["department"],
        status=PresenceState(r["status"]),
        email=r.get("email"),
        phone=r.get("phone"),
        semester=int(r["semester"]) if r.get("semester") is not None else None,
        image_url=r.get("image_url"),
        version=int(r.get("version") or 0),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (student_id,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_for_update(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s FOR UPDATE", (student_id,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def create_student(self, student: Student) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO students(student_id, name, department, status, email, phone, semester,
                                         image_url, version, created_at, updated_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        student.student_id,
                        student.name,
                        student.department,
                        student.status.value,
                        student.email,
                        student.phone,
                        student.semester,
                        student.image_url,
                        student.version,
                        student.created_at,
                        student.updated_at,
                    ),
                )
        except mysql.connector.errors.IntegrityError as exc:
            if exc.errno == _DUPLICATE_ENTRY:
                raise ConflictError("Student with this ID already exists") from exc
            raise

    def update_status(
        self,
        *,
        student_id: str,
        status: PresenceState,
        updated_at: datetime,
        expected_version: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE students
                SET status=%s, updated_at=%s, version=version+1
                WHERE student_id=%s AND version=%s
                """,
                (status.value, updated_at, student_id, int(expected_version)),
            )
            return cur.rowcount > 0

    def list_by_status(self, status: PresenceState) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE status=%s ORDER BY updated_at DESC",
                (status.value,),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY created_at DESC")
            return [_to_student(r) for r in fetchall(cur)]

    def count_by_status(self) -> Dict[PresenceState, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM students GROUP BY status")
            counts = {state: 0 for state in PresenceState}
            for r in fetchall(cur):
                counts[PresenceState(r["status"])] = int(r["n"])
            return counts
