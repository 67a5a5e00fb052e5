from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from otto.core.models import TranscriptChunk


@dataclass
class Launch:
    """A started process: its pid, live output, and a one-shot release."""

    pid: int
    chunks: Iterator[TranscriptChunk]
    cleanup: Callable[[], None]


@runtime_checkable
class ProcessRunner(Protocol):
    """Starts an external process and exposes its output as a stream.

    The chunk iterator ends when the process closes its output.
    cleanup() waits for (or kills) the process and releases its pipes;
    it raises RunnerError if the process exited badly and is safe to call
    more than once.
    """

    def start(self, name: str, env: Mapping[str, str] | None, *args: str) -> Launch: ...


@runtime_checkable
class Provider(Protocol):
    """Agent vendor (Claude, Codex).

    command: argv for one non-interactive turn
    session_from_event: session token carried by a decoded control record
    """

    name: str

    def command(self, prompt: str, session_id: str | None) -> list[str]: ...

    def session_from_event(self, record: dict[str, Any]) -> str | None: ...
