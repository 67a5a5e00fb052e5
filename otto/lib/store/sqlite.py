import logging
import sqlite3
import time
from pathlib import Path

logger = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 5
BUSY_TIMEOUT_MS = 5000
SLOW_CONNECT_SECONDS = 0.1

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}",
    "PRAGMA journal_mode = WAL",
)


def _open(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.isolation_level = None
    try:
        for pragma in _PRAGMAS:
            conn.execute(pragma)
    except sqlite3.OperationalError:
        conn.close()
        raise
    return conn


def connect(db_path: Path) -> sqlite3.Connection:
    """Open otto.db in autocommit mode with WAL journaling.

    Worker turns, CLI calls and the orchestrator all share the file. Switching
    to WAL needs a brief exclusive lock, so a "database is locked" on open is
    retried with a short backoff.
    """
    started = time.perf_counter()
    attempt = 1
    while True:
        try:
            conn = _open(db_path)
            break
        except sqlite3.OperationalError as err:
            if "locked" not in str(err).lower() or attempt >= CONNECT_ATTEMPTS:
                raise
            time.sleep(0.05 * attempt)
            attempt += 1

    elapsed = time.perf_counter() - started
    if elapsed > SLOW_CONNECT_SECONDS:
        logger.warning(f"Opening {db_path.name} took {elapsed:.3f}s after {attempt} attempt(s)")
    return conn
