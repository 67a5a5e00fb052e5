"""Spawning: register a worker agent and hand it its first prompt."""

import logging
import uuid

from otto.core.models import SESSION_PLACEHOLDER, Agent, AgentStatus, Message
from otto.lib import config as config_module
from otto.lib import ids, providers
from otto.lib.config import Config

from . import agents
from .prompt import build_spawn_prompt

logger = logging.getLogger(__name__)


def initial_session_id(agent_type: str) -> str:
    """Claude takes a caller-chosen session id; codex announces its thread id mid-stream."""
    if agent_type == "claude":
        return str(uuid.uuid4())
    return SESSION_PLACEHOLDER


def spawn_worker(
    task: str,
    agent_type: str = "claude",
    files: str | None = None,
    context: str | None = None,
    agent_id: str | None = None,
    config: Config | None = None,
) -> tuple[Agent, Message]:
    """Create a working agent for a task and post its prompt.

    Returns the agent and the prompt message. The process itself is started
    by a worker turn (run_worker).
    """
    from otto.os import bridge

    providers.get_provider(agent_type)
    config = config_module.resolve(config)
    agent_id = agent_id or ids.generate_agent_id(task, config)

    agent = agents.create_agent(
        Agent(
            id=agent_id,
            type=agent_type,
            task=task,
            status=AgentStatus.WORKING,
            session_id=initial_session_id(agent_type),
        )
    )
    prompt = bridge.prompt(agent.id, build_spawn_prompt(agent.id, task, files, context), config)
    logger.info(f"Spawned {agent_type} agent {agent.id}")
    return agent, prompt
