"""Worker turn: prompt intake, process run, transcript capture, finalization.

One call runs one turn for one agent and blocks until the process's output
closes. Every chunk is logged verbatim before it is inspected for a
session-start control event; inspection never changes what is logged.
The launch's cleanup runs exactly once on every path out of the turn.
"""

import logging
from collections.abc import Iterable, Mapping

from otto.core.models import AgentStatus, Direction, Message, MessageType, TranscriptChunk
from otto.core.protocols import ProcessRunner
from otto.errors import InvalidTransitionError, NoPromptFoundError
from otto.lib import providers
from otto.lib.runner import once
from otto.os.bridge.api import messages

from . import agents, logs

logger = logging.getLogger(__name__)


def run_worker(
    agent_id: str,
    runner: ProcessRunner,
    env: Mapping[str, str] | None = None,
) -> Message:
    """Run one worker turn and return the exit message it posted.

    Raises:
        NotFoundError: unknown agent
        InvalidTransitionError: agent is complete, or waiting on a response
        NoPromptFoundError: no unread prompt addressed to the agent
        StorageError: a write failed; cleanup has already run
        RunnerError: the process could not be started
    """
    agent = agents.get_agent(agent_id)
    if agent.status in (AgentStatus.COMPLETE, AgentStatus.WAITING):
        raise InvalidTransitionError(agent_id, agent.status.value, AgentStatus.BUSY.value)
    provider = providers.get_provider(agent.type)

    prompt = messages.pending_prompt(agent_id)
    if prompt is None:
        raise NoPromptFoundError(f"No pending prompt for agent '{agent_id}'")

    session_id = agent.session_id if agent.has_session else None
    name, *args = provider.command(prompt.content, session_id)
    worker_env = {"OTTO_AGENT_ID": agent_id, **(env or {})}

    launch = runner.start(name, worker_env, *args)
    release = once(launch.cleanup)
    logger.info(f"Started {agent.type} worker {agent_id} (pid {launch.pid})")

    try:
        # Logged and consumed only once a process is actually running on it.
        logs.create_log_entry(agent_id, Direction.IN, logs.PROMPT_STREAM, prompt.content)
        messages.mark_read(prompt.id, agent_id)
        agents.update_status(agent_id, AgentStatus.BUSY)
        count = capture(agent_id, launch.chunks)
    except BaseException:
        _release_quietly(agent_id, release)
        raise

    exit_note = _release(agent_id, release)
    return _finalize(agent_id, count, exit_note)


def capture(agent_id: str, chunks: Iterable[TranscriptChunk]) -> int:
    """Log every chunk as an out entry; adopt the first session token seen.

    Returns the number of chunks consumed.
    """
    adopted = False
    count = 0
    for chunk in chunks:
        logs.create_log_entry(agent_id, Direction.OUT, chunk.stream, chunk.data)
        count += 1
        if adopted:
            continue
        token = providers.session_from_chunk(chunk.data)
        if token:
            adopted = True
            if agents.update_session_id(agent_id, token):
                logger.debug(f"Agent {agent_id} adopted session {token}")
    return count


def _release(agent_id: str, release) -> str | None:
    try:
        release()
    except Exception as e:
        logger.warning(f"Cleanup for {agent_id} reported: {e}")
        return str(e)
    return None


def _release_quietly(agent_id: str, release) -> None:
    try:
        release()
    except Exception as e:
        logger.warning(f"Cleanup for {agent_id} failed while aborting turn: {e}")


def _finalize(agent_id: str, count: int, exit_note: str | None) -> Message:
    agents.update_status(agent_id, AgentStatus.COMPLETE)
    content = f"exited: {exit_note}" if exit_note else "exited"
    exit_msg = messages.create_message(
        Message(
            id=messages.new_message_id(),
            from_id=agent_id,
            to_id=None,
            type=MessageType.EXIT,
            content=content,
            requires_human=False,
        )
    )
    logger.info(f"Worker {agent_id} complete ({count} chunks captured)")
    return exit_msg


__all__ = ["run_worker", "capture"]
