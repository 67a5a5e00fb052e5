import contextlib
import contextvars
import sqlite3
import threading
from collections.abc import Iterator
from dataclasses import fields
from pathlib import Path
from typing import Any, TypeVar

from otto.core.migrations import MIGRATIONS
from otto.errors import StorageError
from otto.lib import paths
from otto.lib.store import migrations
from otto.lib.store.sqlite import connect

T = TypeVar("T")

Row = sqlite3.Row

_connections = threading.local()
_migrated: set[str] = set()
_migrated_lock = threading.Lock()

# Overrides paths.db_path() for test isolation
_db_path_override: contextvars.ContextVar[Path | None] = contextvars.ContextVar(
    "db_path_override", default=None
)


def database_path() -> Path:
    override = _db_path_override.get()
    return override if override is not None else paths.db_path()


def database_exists() -> bool:
    return database_path().exists()


def from_row(row: sqlite3.Row | dict[str, Any], model: type[T]) -> T:
    """Build a model dataclass from the row columns it declares.

    Extra columns (rowid aliases, joined fields) are dropped.
    """
    columns = row.keys()
    return model(**{f.name: row[f.name] for f in fields(model) if f.name in columns})


def ensure() -> sqlite3.Connection:
    """Ensure otto.db exists with migrations applied.

    Returns a connection cached per thread and per database file.
    """
    db_path = database_path()
    cache_key = str(db_path)

    conn = getattr(_connections, cache_key, None)
    if conn is not None:
        return conn

    db_path.parent.mkdir(parents=True, exist_ok=True)

    with _migrated_lock:
        if cache_key not in _migrated:
            migrations.ensure_schema(db_path, MIGRATIONS)
            _migrated.add(cache_key)

    conn = connect(db_path)
    setattr(_connections, cache_key, conn)
    return conn


@contextlib.contextmanager
def guard(action: str) -> Iterator[None]:
    """Re-raise sqlite3 failures as StorageError naming the failed action."""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"{action}: {e}") from e


@contextlib.contextmanager
def transaction(action: str) -> Iterator[sqlite3.Connection]:
    """Run several statements atomically on the cached connection."""
    with guard(action):
        conn = ensure()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


def close_all() -> None:
    """Close this thread's cached connections."""
    for conn in _connections.__dict__.values():
        conn.close()
    _connections.__dict__.clear()


def set_test_db_path(db_path: Path | None) -> None:
    """Point the store at another database file; None clears the override."""
    _db_path_override.set(db_path)


def _reset_for_testing() -> None:
    _db_path_override.set(None)
    close_all()
    with _migrated_lock:
        _migrated.clear()
