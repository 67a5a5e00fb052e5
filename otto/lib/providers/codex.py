"""Codex provider: exec command line and thread-start event."""

from typing import Any

from otto.core.protocols import Provider

from . import base


class Codex(Provider):
    name = "codex"

    @staticmethod
    def command(prompt: str, session_id: str | None) -> list[str]:
        if session_id:
            return ["codex", "exec", "resume", session_id, "--json", prompt]
        return ["codex", "exec", "--json", prompt]

    @staticmethod
    def session_from_event(record: dict[str, Any]) -> str | None:
        # {"type":"thread.started","thread_id":"..."}
        if record.get("type") == "thread.started":
            return base.token(record.get("thread_id"))
        return None
