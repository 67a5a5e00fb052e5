"""Agent registry: records, lifecycle transitions, session adoption."""

import logging
from datetime import datetime

from otto.core.models import SESSION_PLACEHOLDER, Agent, AgentStatus
from otto.errors import InvalidTransitionError, NotFoundError
from otto.lib import store
from otto.lib.store import from_row

logger = logging.getLogger(__name__)

TRANSITIONS: dict[AgentStatus, frozenset[AgentStatus]] = {
    AgentStatus.WORKING: frozenset({AgentStatus.BUSY, AgentStatus.WAITING}),
    AgentStatus.BUSY: frozenset({AgentStatus.WAITING, AgentStatus.COMPLETE}),
    AgentStatus.WAITING: frozenset(
        {AgentStatus.BUSY, AgentStatus.WORKING, AgentStatus.COMPLETE}
    ),
    AgentStatus.COMPLETE: frozenset(),
}

_COLUMNS = "id, type, task, status, session_id, created_at"


def _row_to_agent(row: store.Row) -> Agent:
    agent = from_row(row, Agent)
    agent.status = AgentStatus(agent.status)
    return agent


def can_transition(current: AgentStatus | str, target: AgentStatus | str) -> bool:
    current, target = AgentStatus(current), AgentStatus(target)
    return current == target or target in TRANSITIONS[current]


def check_transition(agent: Agent, target: AgentStatus | str) -> None:
    if not can_transition(agent.status, target):
        raise InvalidTransitionError(
            agent.id, AgentStatus(agent.status).value, AgentStatus(target).value
        )


def create_agent(agent: Agent) -> Agent:
    """Insert a new agent. Fails with StorageError if the id is taken."""
    if not agent.id:
        raise ValueError("Agent id cannot be empty")
    status = AgentStatus(agent.status)
    created_at = agent.created_at or datetime.now().isoformat()
    session_id = agent.session_id or SESSION_PLACEHOLDER

    with store.guard(f"create agent {agent.id}"), store.ensure() as conn:
        conn.execute(
            f"INSERT INTO agents ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (agent.id, agent.type, agent.task, status.value, session_id, created_at),
        )
    return Agent(
        id=agent.id,
        type=agent.type,
        task=agent.task,
        status=status,
        session_id=session_id,
        created_at=created_at,
    )


def get_agent(agent_id: str) -> Agent:
    with store.guard(f"get agent {agent_id}"), store.ensure() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM agents WHERE id = ?", (agent_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"Agent '{agent_id}' not found")
    return _row_to_agent(row)


def agent_exists(agent_id: str) -> bool:
    with store.guard(f"get agent {agent_id}"), store.ensure() as conn:
        row = conn.execute("SELECT 1 FROM agents WHERE id = ?", (agent_id,)).fetchone()
    return row is not None


def list_agents(status: AgentStatus | str | None = None) -> list[Agent]:
    query = f"SELECT {_COLUMNS} FROM agents"
    params: list[object] = []
    if status is not None:
        query += " WHERE status = ?"
        params.append(AgentStatus(status).value)
    query += " ORDER BY created_at, rowid"

    with store.guard("list agents"), store.ensure() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_agent(row) for row in rows]


def update_status(agent_id: str, status: AgentStatus | str) -> Agent:
    """Move an agent along its lifecycle.

    Same-status updates are no-ops. The write is conditional on the status
    read, so a concurrent change surfaces as InvalidTransitionError instead of
    being overwritten.
    """
    target = AgentStatus(status)
    agent = get_agent(agent_id)
    check_transition(agent, target)
    if agent.status == target:
        return agent

    with store.guard(f"update status of {agent_id}"), store.ensure() as conn:
        cursor = conn.execute(
            "UPDATE agents SET status = ? WHERE id = ? AND status = ?",
            (target.value, agent_id, AgentStatus(agent.status).value),
        )
    if cursor.rowcount == 0:
        current = get_agent(agent_id)
        raise InvalidTransitionError(agent_id, AgentStatus(current.status).value, target.value)

    logger.debug(f"Agent {agent_id}: {AgentStatus(agent.status).value} -> {target.value}")
    agent.status = target
    return agent


def update_session_id(agent_id: str, session_id: str) -> bool:
    """Adopt a session id unless one was already adopted (first writer wins).

    Returns True if the value was stored.
    """
    if not session_id:
        raise ValueError("Session id cannot be empty")
    with store.guard(f"update session of {agent_id}"), store.ensure() as conn:
        cursor = conn.execute(
            "UPDATE agents SET session_id = ? WHERE id = ? AND (session_id IS NULL OR session_id = ?)",
            (session_id, agent_id, SESSION_PLACEHOLDER),
        )
    if cursor.rowcount:
        return True
    if not agent_exists(agent_id):
        raise NotFoundError(f"Agent '{agent_id}' not found")
    return False
