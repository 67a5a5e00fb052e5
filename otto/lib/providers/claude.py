"""Claude provider: headless command line and session-start event."""

from typing import Any

from otto.core.protocols import Provider

from . import base


class Claude(Provider):
    name = "claude"

    @staticmethod
    def command(prompt: str, session_id: str | None) -> list[str]:
        """Claude accepts a caller-chosen session id.

        Without one, stream-json output carries the id in its init event.
        """
        if session_id:
            return ["claude", "-p", prompt, "--session-id", session_id]
        return ["claude", "-p", prompt, "--output-format", "stream-json", "--verbose"]

    @staticmethod
    def session_from_event(record: dict[str, Any]) -> str | None:
        # {"type":"system","subtype":"init","session_id":"..."}
        if record.get("type") == "system" and record.get("subtype") == "init":
            return base.token(record.get("session_id"))
        return None
