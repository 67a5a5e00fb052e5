"""Append-only transcript log per agent."""

from datetime import datetime

from otto.core.models import Direction, LogEntry
from otto.lib import store
from otto.lib.store import from_row

PROMPT_STREAM = "in"


def create_log_entry(
    agent_id: str, direction: Direction | str, stream: str, content: str
) -> LogEntry:
    entry = LogEntry(
        agent_id=agent_id,
        direction=Direction(direction),
        stream=stream,
        content=content,
        created_at=datetime.now().isoformat(),
    )
    with store.guard(f"append log for {agent_id}"), store.ensure() as conn:
        conn.execute(
            "INSERT INTO logs (agent_id, direction, stream, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (entry.agent_id, entry.direction.value, entry.stream, entry.content, entry.created_at),
        )
    return entry


def list_logs(
    agent_id: str, direction: Direction | str | None = None, tail: int = 0
) -> list[LogEntry]:
    """Entries in insertion (arrival) order; `tail` keeps only the last N."""
    query = "SELECT agent_id, direction, stream, content, created_at, rowid AS seq FROM logs WHERE agent_id = ?"
    params: list[object] = [agent_id]
    if direction:
        query += " AND direction = ?"
        params.append(Direction(direction).value)

    if tail > 0:
        query = f"SELECT * FROM ({query} ORDER BY seq DESC LIMIT ?) ORDER BY seq"
        params.append(tail)
    else:
        query += " ORDER BY seq"

    with store.guard(f"list logs for {agent_id}"), store.ensure() as conn:
        rows = conn.execute(query, params).fetchall()
    return [from_row(row, LogEntry) for row in rows]
