"""Database connection management and utilities."""

from otto.lib.store.connection import (
    Row,
    _reset_for_testing,
    close_all,
    database_exists,
    database_path,
    ensure,
    from_row,
    guard,
    set_test_db_path,
    transaction,
)
from otto.lib.store.sqlite import connect

__all__ = [
    "ensure",
    "from_row",
    "guard",
    "transaction",
    "Row",
    "database_exists",
    "database_path",
    "_reset_for_testing",
    "set_test_db_path",
    "close_all",
    "connect",
]
