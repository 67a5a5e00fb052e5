"""Message and tool payloads: plain text or a list of tagged blocks.

Vendor records carry `content` either as a string or as a list like
[{"type": "text", "text": "..."}, {"type": "tool_use", "name": "Bash", ...}].
decode() turns both shapes into the same union so callers never inspect raw
JSON types themselves.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Block:
    kind: str
    fields: dict[str, Any] = field(default_factory=dict)


Content = PlainText | Block


def decode(value: Any) -> list[Content]:
    if value is None:
        return []
    if isinstance(value, str):
        return [PlainText(value)]
    if isinstance(value, dict):
        return [_block(value)]
    if isinstance(value, list):
        parts: list[Content] = []
        for item in value:
            parts.extend(decode(item))
        return parts
    return [PlainText(str(value))]


def _block(raw: dict[str, Any]) -> Content:
    kind = raw.get("type")
    if kind == "text" and isinstance(raw.get("text"), str):
        return PlainText(raw["text"])
    fields = {key: value for key, value in raw.items() if key != "type"}
    return Block(str(kind or "unknown"), fields)


def render(parts: list[Content], max_output: int = 200) -> str:
    lines = []
    for part in parts:
        if isinstance(part, PlainText):
            lines.append(part.text)
        elif part.kind == "tool_use":
            lines.append(f"[tool: {part.fields.get('name', '?')}]")
        elif part.kind == "tool_result":
            output = "".join(
                p.text for p in decode(part.fields.get("content")) if isinstance(p, PlainText)
            )
            if len(output) > max_output:
                output = output[:max_output] + "..."
            lines.append(output)
        else:
            lines.append(f"[{part.kind}]")
    return "\n".join(line for line in lines if line)


def from_record(record: dict[str, Any]) -> list[Content]:
    """Content of a decoded stream record, wherever the vendor nested it."""
    message = record.get("message")
    if isinstance(message, dict) and "content" in message:
        return decode(message["content"])
    item = record.get("item")
    if isinstance(item, dict) and "text" in item:
        return decode(item["text"])
    if "content" in record:
        return decode(record["content"])
    return []
