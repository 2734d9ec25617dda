from __future__ import annotations

from datetime import datetime

import mysql.connector
import pytest

from presence_system.core.enums import PresenceState
from presence_system.core.exceptions import PartialWriteError, TransientStoreError
from presence_system.database.mysql_base import db_cursor, transaction
from presence_system.students.mysql_student_repository import MySQLStudentRepository


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = conn.rowcount
        self.closed = False

    def execute(self, sql, params=()):
        if self._conn.fail_with is not None:
            raise self._conn.fail_with
        self._conn.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self):
        return list(self._conn.rows)

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, factory):
        self.factory = factory
        self.executed = factory.executed
        self.rows = factory.rows
        self.rowcount = factory.rowcount
        self.fail_with = factory.fail_with
        self.events = []

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def start_transaction(self):
        self.events.append("begin")

    def commit(self):
        self.events.append("commit")

    def rollback(self):
        self.events.append("rollback")
        if self.factory.rollback_fails:
            raise mysql.connector.errors.OperationalError("Lost connection to MySQL server")

    def close(self):
        self.events.append("close")


class FakeConnectionFactory:
    def __init__(self, *, rows=(), rowcount=1, fail_with=None, rollback_fails=False):
        self.rollback_fails = rollback_fails
        self.executed = []
        self.rows = list(rows)
        self.rowcount = rowcount
        self.fail_with = fail_with
        self.connections = []

    def connect(self):
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn


def test_db_cursor_commits_and_closes_its_own_connection():
    factory = FakeConnectionFactory()

    with db_cursor(factory) as (_, cur):
        cur.execute("SELECT 1")

    assert len(factory.connections) == 1
    assert factory.connections[0].events == ["commit", "close"]


def test_transaction_shares_one_connection_and_commits_once():
    factory = FakeConnectionFactory()

    with transaction(factory):
        with db_cursor(factory) as (_, cur):
            cur.execute("UPDATE students SET status='in'")
        with db_cursor(factory) as (_, cur):
            cur.execute("INSERT INTO audit_logs VALUES (1)")
        with transaction(factory):
            with db_cursor(factory) as (_, cur):
                cur.execute("INSERT INTO activity_feed VALUES (1)")

    assert len(factory.connections) == 1
    assert factory.connections[0].events == ["begin", "commit", "close"]
    assert len(factory.executed) == 3


def test_transaction_rolls_back_on_error():
    factory = FakeConnectionFactory()

    with pytest.raises(RuntimeError):
        with transaction(factory):
            with db_cursor(factory) as (_, cur):
                cur.execute("UPDATE students SET status='in'")
            raise RuntimeError("audit insert failed")

    assert factory.connections[0].events == ["begin", "rollback", "close"]

    # The shared connection is released once the block ends.
    with db_cursor(factory) as (_, cur):
        cur.execute("SELECT 1")
    assert len(factory.connections) == 2


def test_operational_errors_become_transient():
    factory = FakeConnectionFactory(fail_with=mysql.connector.errors.OperationalError("gone away"))

    with pytest.raises(TransientStoreError):
        with db_cursor(factory) as (_, cur):
            cur.execute("SELECT 1")

    assert factory.connections[0].events == ["rollback", "close"]


def test_student_update_is_compare_and_set():
    factory = FakeConnectionFactory(rowcount=0)
    repo = MySQLStudentRepository(factory)

    changed = repo.update_status(
        student_id="CS001",
        status=PresenceState.IN,
        updated_at=datetime(2026, 3, 2, 9, 0),
        expected_version=4,
    )

    assert changed is False
    sql, params = factory.executed[0]
    assert "version=version+1" in sql
    assert "WHERE student_id=%s AND version=%s" in sql
    assert params[2:] == ("CS001", 4)


def test_get_for_update_locks_the_row():
    factory = FakeConnectionFactory(
        rows=[
            {
                "student_id": "CS001",
                "name": "Asha Verma",
                "department": "CS",
                "status": "in",
                "email": None,
                "phone": None,
                "semester": 3,
                "image_url": None,
                "version": 2,
                "created_at": None,
                "updated_at": None,
            }
        ]
    )
    repo = MySQLStudentRepository(factory)

    student = repo.get_for_update("CS001")

    assert student.status is PresenceState.IN
    assert student.version == 2
    assert factory.executed[0][0].endswith("FOR UPDATE")


def test_failed_rollback_does_not_mask_the_original_error():
    factory = FakeConnectionFactory(rollback_fails=True)

    with pytest.raises(PartialWriteError):
        with transaction(factory):
            raise PartialWriteError("Failed to record audit log entry for CS001", stage="audit log")

    assert factory.connections[0].events == ["begin", "rollback", "close"]
