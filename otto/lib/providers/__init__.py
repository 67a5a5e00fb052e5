"""Agent vendors otto can launch: command building and the session-start hook."""

import sys

from .base import decode_record
from .claude import Claude
from .codex import Codex

PROVIDER_NAMES = ("claude", "codex")


def get_provider(name: str):
    """Get provider class by name.

    Raises:
        ValueError: If provider not found
    """
    if name not in PROVIDER_NAMES:
        raise ValueError(f"Unknown provider: {name}")
    return getattr(sys.modules[__name__], name.capitalize())


def session_from_chunk(data: str) -> str | None:
    """Session token carried by a chunk, if it is a recognized session-start event.

    Both vendors' events are recognized regardless of which vendor produced
    the stream; the event shapes do not overlap.
    """
    record = decode_record(data)
    if record is None:
        return None
    for name in PROVIDER_NAMES:
        token = get_provider(name).session_from_event(record)
        if token:
            return token
    return None


__all__ = ["Claude", "Codex", "PROVIDER_NAMES", "get_provider", "session_from_chunk"]
