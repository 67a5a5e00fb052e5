"""Message bus operations: ask, say, prompt, complete, inbox."""

import logging

from otto.core.models import AgentStatus, Message, MessageFilter, MessageType
from otto.lib import config as config_module
from otto.lib.config import Config
from otto.lib.mentions import parse_mentions

from . import messages

logger = logging.getLogger(__name__)


def _require_sender(from_id: str, config: Config):
    """Senders are registered agents or the orchestrator itself."""
    from otto.os import spawn

    if not from_id:
        raise ValueError("from_id is required")
    if from_id == config.orchestrator_id:
        return None
    return spawn.get_agent(from_id)


def _post(
    from_id: str,
    message_type: MessageType,
    content: str,
    to_id: str | None = None,
    requires_human: bool = False,
) -> Message:
    return messages.create_message(
        Message(
            id=messages.new_message_id(),
            from_id=from_id,
            to_id=to_id,
            type=message_type,
            content=content,
            mentions=parse_mentions(content),
            requires_human=requires_human,
        )
    )


def ask(
    agent_id: str, content: str, requires_human: bool = False, config: Config | None = None
) -> Message:
    """Post a question and put the asking agent into waiting.

    The transition is checked before anything is written, so a completed
    agent cannot leave an orphan question behind.
    """
    from otto.os import spawn

    config = config_module.resolve(config)
    agent = _require_sender(agent_id, config)
    if agent is None:
        raise ValueError("The orchestrator cannot ask; address a worker with a prompt instead")
    spawn.check_transition(agent, AgentStatus.WAITING)

    msg = _post(agent_id, MessageType.QUESTION, content, requires_human=requires_human)
    spawn.update_status(agent_id, AgentStatus.WAITING)
    logger.info(f"{agent_id} is waiting: {content[:80]}")
    return msg


def say(
    from_id: str, content: str, to_id: str | None = None, config: Config | None = None
) -> Message:
    """Post a say message; broadcast unless to_id is given."""
    _require_sender(from_id, config_module.resolve(config))
    return _post(from_id, MessageType.SAY, content, to_id=to_id)


def prompt(agent_id: str, content: str, config: Config | None = None) -> Message:
    """Direct instructions from the orchestrator to a worker."""
    from otto.os import spawn

    config = config_module.resolve(config)
    spawn.get_agent(agent_id)
    return _post(config.orchestrator_id, MessageType.PROMPT, content, to_id=agent_id)


def complete(
    agent_id: str, summary: str | None = None, config: Config | None = None
) -> Message | None:
    """Finish an agent's turn from the agent's side.

    The optional summary is posted as a broadcast say message; the exit
    message is left to the worker pipeline so a turn ends with exactly one.
    """
    from otto.os import spawn

    agent = spawn.get_agent(agent_id)
    spawn.check_transition(agent, AgentStatus.COMPLETE)
    msg = say(agent_id, summary, config=config) if summary else None
    spawn.update_status(agent_id, AgentStatus.COMPLETE)
    return msg


def visible_to(msg: Message, reader_id: str) -> bool:
    """Whether reading msg as reader_id should consume it.

    Prompts are left for the worker pipeline; messages addressed to someone
    else and the reader's own messages are not the reader's to consume.
    """
    return (
        msg.from_id != reader_id
        and msg.type != MessageType.PROMPT
        and (msg.to_id is None or msg.to_id == reader_id)
    )


def inbox(reader_id: str, mark: bool = True, limit: int | None = None) -> list[Message]:
    """Unread messages for a reader: broadcasts, plus anything addressed to it."""
    unread = messages.list_messages(MessageFilter(reader_id=reader_id))
    visible = [m for m in unread if visible_to(m, reader_id)]
    if limit:
        visible = visible[:limit]
    if mark:
        messages.mark_all_read(reader_id, (m.id for m in visible))
    return visible
