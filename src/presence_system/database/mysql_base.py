from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.exceptions import TransientStoreError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Connection owned by the enclosing `transaction()` block, if any.
_active_conn: ContextVar[Optional[Any]] = ContextVar("presence_system_active_conn", default=None)


def _rollback(conn) -> None:
    # Called while another exception propagates; a dead connection must not replace it.
    try:
        conn.rollback()
    except mysql.connector.Error:
        logger.warning("Rollback failed, connection is likely gone", exc_info=True)


@contextmanager
def transaction(conn_factory: DatabaseConnection):
    """Run every `db_cursor` opened inside the block on one connection and commit once.

    Nested blocks join the outer transaction.
    """

    if _active_conn.get() is not None:
        yield _active_conn.get()
        return

    conn = conn_factory.connect()
    token = _active_conn.set(conn)
    try:
        conn.start_transaction()
        yield conn
        conn.commit()
    except Exception:
        _rollback(conn)
        raise
    finally:
        _active_conn.reset(token)
        conn.close()


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    shared = _active_conn.get()
    if shared is not None:
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        except mysql.connector.errors.OperationalError as exc:
            raise TransientStoreError(str(exc)) from exc
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.errors.OperationalError as exc:
        _rollback(conn)
        raise TransientStoreError(str(exc)) from exc
    except Exception:
        _rollback(conn)
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
