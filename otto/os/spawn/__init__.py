from . import api
from .api import (
    agent_exists,
    build_spawn_prompt,
    can_transition,
    check_transition,
    create_agent,
    create_log_entry,
    get_agent,
    list_agents,
    list_logs,
    run_worker,
    spawn_worker,
    update_session_id,
    update_status,
)

__all__ = [
    "api",
    "agent_exists",
    "build_spawn_prompt",
    "can_transition",
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
