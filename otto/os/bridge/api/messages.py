"""Message store: immutable messages, filtered queries, read tracking.

mentions and read_by are sets stored as sorted JSON arrays; membership is
tested in SQL with json_each so filters, ordering and LIMIT all apply in one
query.
"""

import json
import uuid
from collections.abc import Iterable
from datetime import datetime

from otto.core.models import Message, MessageFilter, MessageType
from otto.errors import NotFoundError
from otto.lib import store

_COLUMNS = "id, from_id, to_id, type, content, mentions, requires_human, read_by, created_at"


def _encode_set(values: Iterable[str]) -> str:
    return json.dumps(sorted(set(values)))


def _decode_set(raw: str | None) -> set[str]:
    if not raw:
        return set()
    try:
        items = json.loads(raw)
    except ValueError:
        return set()
    return {item for item in items if isinstance(item, str)} if isinstance(items, list) else set()


def _row_to_message(row: store.Row) -> Message:
    return Message(
        id=row["id"],
        from_id=row["from_id"],
        to_id=row["to_id"],
        type=MessageType(row["type"]),
        content=row["content"],
        mentions=_decode_set(row["mentions"]),
        requires_human=bool(row["requires_human"]),
        read_by=_decode_set(row["read_by"]),
        created_at=row["created_at"],
    )


def new_message_id() -> str:
    return str(uuid.uuid4())


def create_message(msg: Message) -> Message:
    """Insert a message. A duplicate id raises StorageError."""
    message_type = MessageType(msg.type)
    created_at = msg.created_at or datetime.now().isoformat()
    with store.guard(f"create message {msg.id}"), store.ensure() as conn:
        conn.execute(
            f"INSERT INTO messages ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                msg.id,
                msg.from_id,
                msg.to_id,
                message_type.value,
                msg.content,
                _encode_set(msg.mentions),
                int(msg.requires_human),
                _encode_set(msg.read_by),
                created_at,
            ),
        )
    return Message(
        id=msg.id,
        from_id=msg.from_id,
        to_id=msg.to_id,
        type=message_type,
        content=msg.content,
        mentions=set(msg.mentions),
        requires_human=msg.requires_human,
        read_by=set(msg.read_by),
        created_at=created_at,
    )


def get_message(message_id: str) -> Message:
    with store.guard(f"get message {message_id}"), store.ensure() as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM messages WHERE id = ?", (message_id,)
        ).fetchone()
    if row is None:
        raise NotFoundError(f"Message '{message_id}' not found")
    return _row_to_message(row)


def _where(f: MessageFilter) -> tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if f.type:
        clauses.append("m.type = ?")
        params.append(MessageType(f.type).value)
    if f.from_id:
        clauses.append("m.from_id = ?")
        params.append(f.from_id)
    if f.to_id:
        clauses.append("m.to_id = ?")
        params.append(f.to_id)
    if f.mention:
        clauses.append("EXISTS (SELECT 1 FROM json_each(m.mentions) WHERE value = ?)")
        params.append(f.mention)
    if f.reader_id:
        clauses.append("NOT EXISTS (SELECT 1 FROM json_each(m.read_by) WHERE value = ?)")
        params.append(f.reader_id)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def list_messages(f: MessageFilter | None = None) -> list[Message]:
    """Messages matching every set field of the filter, oldest first.

    reader_id excludes messages that reader already consumed. limit caps the
    result after filtering and ordering.
    """
    f = f or MessageFilter()
    where, params = _where(f)
    query = f"SELECT {_COLUMNS} FROM messages m{where} ORDER BY m.created_at, m.rowid"
    if f.limit and f.limit > 0:
        query += " LIMIT ?"
        params.append(f.limit)

    with store.guard("list messages"), store.ensure() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_message(row) for row in rows]


def pending_prompt(agent_id: str) -> Message | None:
    """Most recent prompt directed at the agent that it has not read yet."""
    f = MessageFilter(type=MessageType.PROMPT, to_id=agent_id, reader_id=agent_id)
    where, params = _where(f)
    with store.guard(f"find prompt for {agent_id}"), store.ensure() as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM messages m{where} ORDER BY m.created_at DESC, m.rowid DESC LIMIT 1",
            params,
        ).fetchone()
    return _row_to_message(row) if row else None


def mark_read(message_id: str, reader_id: str) -> None:
    """Add reader_id to the message's read_by set. Idempotent."""
    if not reader_id:
        raise ValueError("reader_id is required")
    with store.transaction(f"mark {message_id} read by {reader_id}") as conn:
        row = conn.execute("SELECT read_by FROM messages WHERE id = ?", (message_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Message '{message_id}' not found")
        read_by = _decode_set(row["read_by"])
        if reader_id in read_by:
            return
        read_by.add(reader_id)
        conn.execute(
            "UPDATE messages SET read_by = ? WHERE id = ?", (_encode_set(read_by), message_id)
        )


def mark_all_read(reader_id: str, message_ids: Iterable[str]) -> None:
    for message_id in message_ids:
        mark_read(message_id, reader_id)
