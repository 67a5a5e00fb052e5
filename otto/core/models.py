from dataclasses import dataclass, field
from enum import Enum

SESSION_PLACEHOLDER = "pending"


class AgentStatus(str, Enum):
    WORKING = "working"
    BUSY = "busy"
    WAITING = "waiting"
    COMPLETE = "complete"


class MessageType(str, Enum):
    SAY = "say"
    QUESTION = "question"
    PROMPT = "prompt"
    EXIT = "exit"


class Direction(str, Enum):
    IN = "in"
    OUT = "out"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


@dataclass
class Agent:
    id: str
    type: str
    task: str
    status: AgentStatus | str = AgentStatus.WORKING
    session_id: str | None = SESSION_PLACEHOLDER
    created_at: str | None = None

    @property
    def has_session(self) -> bool:
        return bool(self.session_id) and self.session_id != SESSION_PLACEHOLDER


@dataclass
class Message:
    id: str
    from_id: str
    type: MessageType | str
    content: str
    to_id: str | None = None
    mentions: set[str] = field(default_factory=set)
    requires_human: bool = False
    read_by: set[str] = field(default_factory=set)
    created_at: str | None = None

    @property
    def is_broadcast(self) -> bool:
        return self.to_id is None


@dataclass
class MessageFilter:
    type: MessageType | str | None = None
    from_id: str | None = None
    to_id: str | None = None
    mention: str | None = None
    reader_id: str | None = None
    limit: int | None = None


@dataclass
class LogEntry:
    agent_id: str
    direction: Direction | str
    stream: str
    content: str
    created_at: str | None = None


@dataclass
class Task:
    id: str
    title: str
    status: TaskStatus | str = TaskStatus.OPEN
    parent_id: str | None = None
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    repo_path: str = ""
    branch: str = ""

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class TranscriptChunk:
    """One piece of process output, tagged by the stream it came from."""

    stream: str
    data: str
