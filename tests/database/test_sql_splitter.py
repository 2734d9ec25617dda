from __future__ import annotations

from pathlib import Path

from presence_system.database.bootstrap import iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_semicolons_inside_quotes_do_not_split():
    sql = "INSERT INTO t VALUES ('a;b'); INSERT INTO t VALUES (\"c;d\");\nSELECT 1"

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_schema_declares_every_table_and_the_ttl_event():
    statements = list(iter_sql_statements(SCHEMA.read_text(encoding="utf-8")))
    text = "\n".join(statements)

    for table in ("students", "audit_logs", "activity_feed"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in text
    assert "CREATE EVENT IF NOT EXISTS evt_activity_feed_ttl" in text
    assert "version" in text
