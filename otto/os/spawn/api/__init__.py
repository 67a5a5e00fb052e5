from .agents import (
    TRANSITIONS,
    agent_exists,
    can_transition,
    check_transition,
    create_agent,
    get_agent,
    list_agents,
    update_session_id,
    update_status,
)
from .logs import create_log_entry, list_logs
from .prompt import build_spawn_prompt
from .spawns import spawn_worker
from .worker import capture, run_worker

__all__ = [
    "TRANSITIONS",
    "agent_exists",
    "build_spawn_prompt",
    "can_transition",
    "capture",
    "check_transition",
    "create_agent",
    "create_log_entry",
    "get_agent",
    "list_agents",
    "list_logs",
    "run_worker",
    "spawn_worker",
    "update_session_id",
    "update_status",
]
