import pytest

from otto.core.models import SESSION_PLACEHOLDER, AgentStatus, MessageFilter, MessageType, TranscriptChunk
from otto.errors import InvalidTransitionError, NoPromptFoundError, RunnerError, StorageError
from otto.os import bridge, spawn
from otto.os.spawn.api import logs

SESSION_EVENT = '{"type":"system","subtype":"init","session_id":"sess-1"}\n'
THREAD_EVENT = '{"type":"thread.started","thread_id":"th-1"}\n'


def out(data):
    return TranscriptChunk("stdout", data)


def err(data):
    return TranscriptChunk("stderr", data)


def exit_messages(agent_id):
    return bridge.list_messages(MessageFilter(type=MessageType.EXIT, from_id=agent_id))


def test_turn_logs_every_chunk(prompted_agent, fake_runner):
    runner = fake_runner([out("a\n"), err("b\n"), out("c\n")])
    exit_msg = spawn.run_worker(prompted_agent.id, runner)

    entries = spawn.list_logs(prompted_agent.id)
    assert [(e.direction, e.stream, e.content) for e in entries] == [
        ("in", "in", "Implement the feature"),
        ("out", "stdout", "a\n"),
        ("out", "stderr", "b\n"),
        ("out", "stdout", "c\n"),
    ]
    assert spawn.get_agent(prompted_agent.id).status == AgentStatus.COMPLETE
    assert exit_messages(prompted_agent.id) == [exit_msg]
    assert exit_msg.content == "exited"
    assert exit_msg.is_broadcast
    assert not exit_msg.requires_human
    assert runner.cleanup_calls == 1


def test_turn_with_no_output(prompted_agent, fake_runner):
    runner = fake_runner([])
    spawn.run_worker(prompted_agent.id, runner)

    assert len(spawn.list_logs(prompted_agent.id, direction="out")) == 0
    assert len(spawn.list_logs(prompted_agent.id, direction="in")) == 1
    assert len(exit_messages(prompted_agent.id)) == 1
    assert runner.cleanup_calls == 1


def test_command_and_env(prompted_agent, fake_runner):
    runner = fake_runner([])
    spawn.run_worker(prompted_agent.id, runner, env={"EXTRA": "1"})

    name, env, args = runner.started[0]
    assert name == "claude"
    assert args[:2] == ["-p", "Implement the feature"]
    assert env == {"OTTO_AGENT_ID": prompted_agent.id, "EXTRA": "1"}


def test_session_adopted_from_stream(prompted_agent, fake_runner):
    spawn.run_worker(prompted_agent.id, fake_runner([out("hello\n"), out(SESSION_EVENT)]))
    assert spawn.get_agent(prompted_agent.id).session_id == "sess-1"


def test_only_first_session_event_counts(prompted_agent, fake_runner):
    later = '{"type":"system","subtype":"init","session_id":"sess-2"}\n'
    spawn.run_worker(prompted_agent.id, fake_runner([out(SESSION_EVENT), out(later)]))
    assert spawn.get_agent(prompted_agent.id).session_id == "sess-1"


def test_codex_thread_event(new_agent, fake_runner):
    agent = new_agent("cx", agent_type="codex")
    bridge.prompt(agent.id, "go")
    runner = fake_runner([out(THREAD_EVENT)])
    spawn.run_worker(agent.id, runner)

    assert runner.started[0][0] == "codex"
    assert spawn.get_agent(agent.id).session_id == "th-1"


def test_existing_session_not_overwritten(new_agent, fake_runner):
    agent = new_agent("resumed", session_id="known")
    bridge.prompt(agent.id, "continue")
    runner = fake_runner([out(SESSION_EVENT)])
    spawn.run_worker(agent.id, runner)

    assert "known" in runner.started[0][2]
    assert spawn.get_agent(agent.id).session_id == "known"


def test_placeholder_kept_without_event(prompted_agent, fake_runner):
    spawn.run_worker(prompted_agent.id, fake_runner([out('{"type": "assistant"}\n')]))
    assert spawn.get_agent(prompted_agent.id).session_id == SESSION_PLACEHOLDER


def test_malformed_json_is_plain_log(prompted_agent, fake_runner):
    broken = '{"type":"system","subtype":"init","session_id":'
    spawn.run_worker(prompted_agent.id, fake_runner([out(broken), out(SESSION_EVENT)]))

    contents = [e.content for e in spawn.list_logs(prompted_agent.id, direction="out")]
    assert contents == [broken, SESSION_EVENT]
    assert spawn.get_agent(prompted_agent.id).session_id == "sess-1"


def test_prompt_consumed(prompted_agent, fake_runner):
    spawn.run_worker(prompted_agent.id, fake_runner([]))
    assert bridge.pending_prompt(prompted_agent.id) is None


def test_no_prompt(agent, fake_runner):
    runner = fake_runner([out("x\n")])
    with pytest.raises(NoPromptFoundError):
        spawn.run_worker(agent.id, runner)
    assert runner.started == []
    assert spawn.list_logs(agent.id) == []


def test_complete_agent_rejected(new_agent, fake_runner):
    agent = new_agent("done", status=AgentStatus.COMPLETE)
    bridge.prompt(agent.id, "again")
    runner = fake_runner([])

    with pytest.raises(InvalidTransitionError):
        spawn.run_worker(agent.id, runner)
    assert runner.started == []
    assert exit_messages(agent.id) == []


def test_waiting_agent_rejected(new_agent, fake_runner):
    agent = new_agent("asking", status=AgentStatus.WAITING)
    bridge.prompt(agent.id, "go")
    with pytest.raises(InvalidTransitionError):
        spawn.run_worker(agent.id, fake_runner([]))


def test_cleanup_runs_once_on_storage_error(prompted_agent, fake_runner, monkeypatch):
    runner = fake_runner([out("a\n"), out("b\n")])
    original = logs.create_log_entry

    def failing(agent_id, direction, stream, content):
        if direction == "out":
            raise StorageError("disk full")
        return original(agent_id, direction, stream, content)

    monkeypatch.setattr(logs, "create_log_entry", failing)

    with pytest.raises(StorageError, match="disk full"):
        spawn.run_worker(prompted_agent.id, runner)
    assert runner.cleanup_calls == 1
    assert exit_messages(prompted_agent.id) == []
    assert spawn.get_agent(prompted_agent.id).status == AgentStatus.BUSY


def test_cleanup_error_recorded_in_exit(prompted_agent, fake_runner):
    runner = fake_runner([out("a\n")], cleanup_error=RunnerError("claude exited with status 1"))
    exit_msg = spawn.run_worker(prompted_agent.id, runner)

    assert exit_msg.content == "exited: claude exited with status 1"
    assert runner.cleanup_calls == 1
    assert spawn.get_agent(prompted_agent.id).status == AgentStatus.COMPLETE


def test_runner_start_failure(prompted_agent, fake_runner):
    runner = fake_runner(start_error=RunnerError("claude: failed to start"))
    with pytest.raises(RunnerError):
        spawn.run_worker(prompted_agent.id, runner)
    assert bridge.pending_prompt(prompted_agent.id) is not None
    assert spawn.get_agent(prompted_agent.id).status == AgentStatus.WORKING
    assert spawn.list_logs(prompted_agent.id) == []

    spawn.run_worker(prompted_agent.id, fake_runner([out("ok\n")]))
    intake = spawn.list_logs(prompted_agent.id, direction="in")
    assert [e.content for e in intake] == ["Implement the feature"]


def test_agent_completing_mid_turn_gets_one_exit(prompted_agent, fake_runner):
    def chunks():
        yield out("working\n")
        bridge.complete(prompted_agent.id, "done early")
        yield out("bye\n")

    runner = fake_runner()
    runner.chunks = chunks()
    spawn.run_worker(prompted_agent.id, runner)

    assert spawn.get_agent(prompted_agent.id).status == AgentStatus.COMPLETE
    assert len(exit_messages(prompted_agent.id)) == 1


def test_end_to_end(new_agent, fake_runner):
    a = new_agent("a", status=AgentStatus.WORKING)
    bridge.ask(a.id, "need input")
    assert spawn.get_agent(a.id).status == AgentStatus.WAITING
    questions = bridge.list_messages(MessageFilter(type=MessageType.QUESTION, from_id=a.id))
    assert len(questions) == 1

    b = new_agent("b", status=AgentStatus.BUSY)
    bridge.prompt(b.id, "do X")
    spawn.run_worker(b.id, fake_runner([out("line1\n"), err("line2\n")]))

    entries = spawn.list_logs(b.id)
    assert [(e.direction, e.content) for e in entries if e.direction == "in"] == [("in", "do X")]
    assert len([e for e in entries if e.direction == "out"]) == 2
    assert spawn.get_agent(b.id).status == AgentStatus.COMPLETE
    assert len(exit_messages(b.id)) == 1
