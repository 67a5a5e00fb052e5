import uuid

import pytest

from otto.core.models import SESSION_PLACEHOLDER, AgentStatus, MessageType
from otto.lib.config import Config
from otto.os import bridge, spawn


def test_spawn_claude_worker(test_otto):
    agent, prompt = spawn.spawn_worker("Auth backend", files="auth.py", context="use jwt")

    assert agent.id == "authbackend"
    assert agent.status == AgentStatus.WORKING
    uuid.UUID(agent.session_id)

    assert prompt.type == MessageType.PROMPT
    assert prompt.to_id == agent.id
    assert "Auth backend" in prompt.content
    assert "auth.py" in prompt.content
    assert "use jwt" in prompt.content
    assert bridge.pending_prompt(agent.id).id == prompt.id


def test_spawn_codex_keeps_placeholder(test_otto):
    agent, _ = spawn.spawn_worker("Fix tests", agent_type="codex")
    assert agent.session_id == SESSION_PLACEHOLDER


def test_spawn_collision_suffix(test_otto):
    first, _ = spawn.spawn_worker("same task")
    second, _ = spawn.spawn_worker("same task")
    assert (first.id, second.id) == ("sametask", "sametask-2")


def test_spawn_explicit_id(test_otto):
    agent, _ = spawn.spawn_worker("anything", agent_id="custom")
    assert agent.id == "custom"


def test_spawn_unknown_type(test_otto):
    with pytest.raises(ValueError):
        spawn.spawn_worker("task", agent_type="gemini")
    assert spawn.list_agents() == []


def test_spawn_prompt_from_configured_orchestrator(test_otto):
    _, prompt = spawn.spawn_worker("task", config=Config(orchestrator_id="lead"))
    assert prompt.from_id == "lead"


def test_build_spawn_prompt():
    text = spawn.build_spawn_prompt("w-1", "write docs")
    assert "You are w-1" in text
    assert "write docs" in text
    assert "otto complete" in text
    assert "FILES" not in text
