"""Schema migrations: ordered (name, sql-or-callable) steps recorded in _migrations."""

import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

from otto.lib.store.sqlite import connect

logger = logging.getLogger(__name__)

Migration = tuple[str, str | Callable[[sqlite3.Connection], None]]


def ensure_schema(db_path: Path, migs: list[Migration] | None = None) -> None:
    """Ensure schema exists and apply migrations."""
    conn = connect(db_path)
    try:
        if migs:
            migrate(conn, migs)
    finally:
        conn.close()


def migrate(conn: sqlite3.Connection, migs: list[Migration]) -> None:
    """Apply pending migrations, each in its own transaction."""
    conn.execute("CREATE TABLE IF NOT EXISTS _migrations (name TEXT PRIMARY KEY)")

    for name, migration in migs:
        applied = conn.execute("SELECT 1 FROM _migrations WHERE name = ?", (name,)).fetchone()
        if applied:
            continue
        try:
            conn.execute("BEGIN")
            if callable(migration):
                migration(conn)
            else:
                for statement in _split(migration):
                    conn.execute(statement)
            conn.execute("INSERT OR IGNORE INTO _migrations (name) VALUES (?)", (name,))
            conn.execute("COMMIT")
        except Exception as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Migration '{name}' failed: {e}")
            raise


def applied_migrations(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute("SELECT name FROM _migrations ORDER BY rowid").fetchall()
    return [row[0] for row in rows]


def _split(script: str) -> list[str]:
    # executescript() would commit the open transaction, so run statements one by one.
    return [part.strip() for part in script.split(";") if part.strip()]
