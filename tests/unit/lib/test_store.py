import sqlite3

import pytest

from otto.core.migrations import MIGRATIONS
from otto.errors import StorageError
from otto.lib import store
from otto.lib.store import migrations


def test_ensure_creates_schema(test_otto):
    conn = store.ensure()
    tables = {
        row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert {"agents", "messages", "logs", "tasks", "_migrations"} <= tables
    assert migrations.applied_migrations(conn) == [name for name, _ in MIGRATIONS]


def test_ensure_caches_connection(test_otto):
    assert store.ensure() is store.ensure()


def test_migrations_rerun_is_noop(test_otto):
    conn = store.ensure()
    migrations.migrate(conn, MIGRATIONS)
    assert len(migrations.applied_migrations(conn)) == len(MIGRATIONS)


def test_failed_migration_rolls_back(tmp_path):
    conn = store.connect(tmp_path / "broken.db")
    broken = [("ok", "CREATE TABLE a (x INTEGER)"), ("bad", "CREATE TABLE b (x; CREATE TABLE c (y)")]
    with pytest.raises(sqlite3.Error):
        migrations.migrate(conn, broken)
    assert migrations.applied_migrations(conn) == ["ok"]
    assert conn.execute("SELECT name FROM sqlite_master WHERE name = 'c'").fetchone() is None
    conn.close()


def test_callable_migration(tmp_path):
    conn = store.connect(tmp_path / "calls.db")
    seen = []
    migrations.migrate(conn, [("record", lambda c: seen.append(c))])
    assert seen == [conn]
    assert migrations.applied_migrations(conn) == ["record"]
    conn.close()


def test_empty_sets_backfilled(tmp_path):
    conn = store.connect(tmp_path / "legacy.db")
    migrations.migrate(conn, MIGRATIONS[:1])
    conn.execute(
        "INSERT INTO messages (id, from_id, type, content, mentions, read_by, created_at) "
        "VALUES ('m1', 'a', 'say', 'hi', '', '', '2024-01-01')"
    )
    migrations.migrate(conn, MIGRATIONS)
    row = conn.execute("SELECT mentions, read_by FROM messages WHERE id = 'm1'").fetchone()
    assert (row["mentions"], row["read_by"]) == ("[]", "[]")
    conn.close()


def test_guard_wraps_sqlite_errors(test_otto):
    with pytest.raises(StorageError, match="select nothing"):
        with store.guard("select nothing"), store.ensure() as conn:
            conn.execute("SELECT * FROM no_such_table")


def test_transaction_rolls_back_on_error(test_otto):
    with pytest.raises(RuntimeError):
        with store.transaction("insert then fail") as conn:
            conn.execute(
                "INSERT INTO agents (id, type, task, status, created_at) "
                "VALUES ('a', 'claude', 't', 'working', '2024-01-01')"
            )
            raise RuntimeError("boom")
    assert store.ensure().execute("SELECT COUNT(*) FROM agents").fetchone()[0] == 0


def test_test_db_path_override(test_otto, tmp_path):
    other = tmp_path / "other" / "otto.db"
    store.set_test_db_path(other)
    try:
        assert store.database_path() == other
        store.ensure()
        assert store.database_exists()
    finally:
        store.set_test_db_path(None)
