import pytest

from otto.core.models import Agent, AgentStatus
from otto.core.protocols import Launch
from otto.lib import config, store
from otto.os import bridge, spawn


@pytest.fixture
def test_otto(monkeypatch, tmp_path):
    """Isolated otto home per test execution.

    Provides:
    - Temporary OTTO_HOME instead of the real ~/.otto
    - Fresh store state (setup + teardown reset)
    - Config cache cleared so a test's config.yaml is picked up

    ALL tests using store.ensure() must accept this fixture to ensure isolation.
    """
    store._reset_for_testing()
    config.clear_cache()

    home = tmp_path / ".otto"
    home.mkdir()
    monkeypatch.setenv("OTTO_HOME", str(home))

    with store.ensure():
        pass

    yield home

    store._reset_for_testing()
    config.clear_cache()


def make_agent(agent_id="worker", agent_type="claude", status=AgentStatus.WORKING, task="do work", **kwargs):
    return spawn.create_agent(
        Agent(id=agent_id, type=agent_type, task=task, status=status, **kwargs)
    )


@pytest.fixture
def agent(test_otto):
    return make_agent()


@pytest.fixture
def prompted_agent(agent):
    bridge.prompt(agent.id, "Implement the feature")
    return agent


class FakeRunner:
    """ProcessRunner double: replays chunks and counts cleanup calls."""

    def __init__(self, chunks=(), cleanup_error=None, start_error=None):
        self.chunks = list(chunks)
        self.cleanup_error = cleanup_error
        self.start_error = start_error
        self.cleanup_calls = 0
        self.started = []

    def start(self, name, env, *args):
        if self.start_error is not None:
            raise self.start_error
        self.started.append((name, dict(env or {}), list(args)))
        return Launch(pid=4242, chunks=iter(self.chunks), cleanup=self._cleanup)

    def _cleanup(self):
        self.cleanup_calls += 1
        if self.cleanup_error is not None:
            raise self.cleanup_error


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def new_agent(test_otto):
    return make_agent
