"""Shared control-record decoding for provider output streams."""

import json
from typing import Any


def decode_record(data: str) -> dict[str, Any] | None:
    """Decode one output chunk as a single JSON object, or None.

    Chunks that are plain text, partial lines, or JSON scalars/arrays are not
    control records; that is not an error.
    """
    text = data.strip()
    if not text.startswith("{"):
        return None
    try:
        record = json.loads(text)
    except ValueError:
        return None
    return record if isinstance(record, dict) else None


def token(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
