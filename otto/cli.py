import json
import logging
from dataclasses import asdict

import typer

from otto.core.models import Direction, MessageFilter
from otto.errors import OttoError
from otto.lib import config as config_module
from otto.lib import content
from otto.lib.providers import PROVIDER_NAMES, decode_record
from otto.lib.runner import SubprocessRunner
from otto.os import bridge, spawn, task

app = typer.Typer(no_args_is_help=True, add_completion=False)
task_app = typer.Typer(no_args_is_help=True)
app.add_typer(task_app, name="task", help="Manage persistent tasks.")


@app.callback()
def common_options_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
):
    """Coordinate coding agents: messages, lifecycle, transcripts."""
    cfg = config_module.load()
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if ctx.obj is None:
        ctx.obj = {}
    ctx.obj["json"] = json_output
    ctx.obj["config"] = cfg


def _config(ctx: typer.Context) -> config_module.Config:
    return ctx.obj.get("config") or config_module.load()


def output_json(data, ctx: typer.Context) -> bool:
    """Output data as JSON if requested. Returns True if output, False otherwise."""
    if ctx.obj.get("json"):
        typer.echo(json.dumps(data, indent=2, default=_jsonable))
        return True
    return False


def _jsonable(value):
    if isinstance(value, set):
        return sorted(value)
    return str(value)


def fail(e: Exception) -> None:
    typer.echo(f"❌ {e}", err=True)
    raise typer.Exit(code=1) from e


@app.command()
def ask(
    ctx: typer.Context,
    question: str = typer.Argument(..., help="Question text"),
    agent_id: str = typer.Option(..., "--id", help="Agent asking the question"),
    human: bool = typer.Option(False, "--human", help="Needs a human, not the orchestrator"),
):
    """Ask a question (sets the agent to waiting)."""
    try:
        msg = bridge.ask(agent_id, question, requires_human=human, config=_config(ctx))
    except (OttoError, ValueError) as e:
        fail(e)
    output_json(asdict(msg), ctx) or typer.echo(f"{agent_id} is waiting")


@app.command()
def say(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Message text"),
    agent_id: str = typer.Option(..., "--id", help="Sender agent"),
    to: str = typer.Option(None, "--to", help="Recipient (broadcast if omitted)"),
):
    """Post a message to everyone, or to one agent."""
    try:
        msg = bridge.say(agent_id, text, to_id=to, config=_config(ctx))
    except (OttoError, ValueError) as e:
        fail(e)
    output_json(asdict(msg), ctx) or typer.echo("Sent")


@app.command()
def complete(
    ctx: typer.Context,
    summary: str = typer.Argument(None, help="What was done"),
    agent_id: str = typer.Option(..., "--id", help="Agent finishing its task"),
):
    """Mark the agent's task complete."""
    try:
        bridge.complete(agent_id, summary, config=_config(ctx))
    except (OttoError, ValueError) as e:
        fail(e)
    output_json({"id": agent_id, "status": "complete"}, ctx) or typer.echo(
        f"{agent_id} complete"
    )


@app.command()
def status(ctx: typer.Context):
    """List agents and their statuses."""
    try:
        agents = spawn.list_agents()
    except OttoError as e:
        fail(e)
    if output_json([asdict(a) for a in agents], ctx):
        return
    if not agents:
        typer.echo("No agents")
        return
    for a in agents:
        typer.echo(f"{a.id} [{a.type}]: {a.status.value} - {a.task}")


@app.command()
def messages(
    ctx: typer.Context,
    agent_id: str = typer.Option(..., "--id", help="Reader agent"),
    message_type: str = typer.Option(None, "--type", help="Only this message type"),
    from_id: str = typer.Option(None, "--from", help="Only from this sender"),
    mention: str = typer.Option(None, "--mention", help="Only messages mentioning this agent"),
    limit: int = typer.Option(0, "--limit", help="Max messages"),
    include_read: bool = typer.Option(False, "--all", help="Include already-read messages"),
):
    """Read messages. Unread ones meant for --id are marked read."""
    try:
        if message_type or from_id or mention or include_read:
            found = bridge.list_messages(
                MessageFilter(
                    type=message_type,
                    from_id=from_id,
                    mention=mention,
                    reader_id=None if include_read else agent_id,
                    limit=limit or None,
                )
            )
            consumed = (
                m.id for m in found if agent_id not in m.read_by and bridge.visible_to(m, agent_id)
            )
            bridge.mark_all_read(agent_id, consumed)
        else:
            found = bridge.inbox(agent_id, limit=limit or None)
    except (OttoError, ValueError) as e:
        fail(e)

    if output_json([asdict(m) for m in found], ctx):
        return
    if not found:
        typer.echo("No new messages")
        return
    for m in found:
        target = f" -> {m.to_id}" if m.to_id else ""
        typer.echo(f"[{m.type.value}] {m.from_id}{target}: {m.content}")


@app.command()
def log(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent whose transcript to show"),
    tail: int = typer.Option(0, "--tail", help="Only the last N entries"),
    raw: bool = typer.Option(False, "--raw", help="Print chunks exactly as captured"),
):
    """Show an agent's captured transcript."""
    try:
        entries = spawn.list_logs(agent_id, tail=tail)
    except OttoError as e:
        fail(e)
    if output_json([asdict(e) for e in entries], ctx):
        return
    for entry in entries:
        if entry.direction == Direction.IN:
            typer.echo(f">>> {entry.content}")
            continue
        text = entry.content.rstrip("\n")
        record = None if raw else decode_record(text)
        if record is not None:
            text = content.render(content.from_record(record)) or text
        if entry.stream == "stderr":
            typer.echo(text, err=True)
        else:
            typer.echo(text)


@app.command("spawn")
def spawn_cmd(
    ctx: typer.Context,
    task_text: str = typer.Argument(..., metavar="TASK", help="What the worker should do"),
    agent_type: str = typer.Option("claude", "--type", help=f"One of: {', '.join(PROVIDER_NAMES)}"),
    files: str = typer.Option(None, "--files", help="Relevant files, comma separated"),
    context: str = typer.Option(None, "--context", help="Extra context for the worker"),
    agent_id: str = typer.Option(None, "--id", help="Explicit agent id"),
    run: bool = typer.Option(True, "--run/--no-run", help="Run the first turn now"),
):
    """Spawn a worker agent for a task."""
    cfg = _config(ctx)
    try:
        agent, _ = spawn.spawn_worker(
            task_text, agent_type, files=files, context=context, agent_id=agent_id, config=cfg
        )
        if run:
            spawn.run_worker(agent.id, SubprocessRunner(timeout=cfg.spawn_timeout))
    except (OttoError, ValueError) as e:
        fail(e)
    output_json({"id": agent.id, "type": agent.type}, ctx) or typer.echo(agent.id)


@app.command("worker-spawn")
def worker_spawn(
    ctx: typer.Context,
    agent_id: str = typer.Argument(..., help="Agent with a pending prompt"),
):
    """Run one worker turn for an agent and capture its transcript."""
    cfg = _config(ctx)
    try:
        exit_msg = spawn.run_worker(agent_id, SubprocessRunner(timeout=cfg.spawn_timeout))
    except (OttoError, ValueError) as e:
        fail(e)
    output_json(asdict(exit_msg), ctx) or typer.echo(f"{agent_id} {exit_msg.content}")


@task_app.command("add")
def task_add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    parent: str = typer.Option(None, "--parent", help="Parent task id"),
    notes: str = typer.Option(None, "--notes", help="Notes"),
    repo: str = typer.Option("", "--repo", help="Repository path"),
    branch: str = typer.Option("", "--branch", help="Branch"),
):
    """Create a task."""
    try:
        t = task.create_task(
            title, parent_id=parent, notes=notes, repo_path=repo, branch=branch, config=_config(ctx)
        )
    except (OttoError, ValueError) as e:
        fail(e)
    output_json(asdict(t), ctx) or typer.echo(t.id)


@task_app.command("show")
def task_show(ctx: typer.Context, task_id: str = typer.Argument(..., help="Task id")):
    """Show a task."""
    try:
        t = task.get_task(task_id)
    except OttoError as e:
        fail(e)
    if output_json(asdict(t), ctx):
        return
    typer.echo(f"{t.id} [{t.status.value}] {t.title}")
    if t.notes:
        typer.echo(t.notes)
    if t.deleted:
        typer.echo(f"(deleted {t.deleted_at})")


@task_app.command("update")
def task_update(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
    title: str = typer.Option(None, "--title", help="New title"),
    task_status: str = typer.Option(None, "--status", help="open, in_progress or closed"),
    notes: str = typer.Option(None, "--notes", help="New notes"),
):
    """Update some fields of a task."""
    try:
        t = task.update_task(task_id, title=title, status=task_status, notes=notes)
    except (OttoError, ValueError) as e:
        fail(e)
    output_json(asdict(t), ctx) or typer.echo(f"{t.id} [{t.status.value}] {t.title}")


@task_app.command("delete")
def task_delete(ctx: typer.Context, task_id: str = typer.Argument(..., help="Task id")):
    """Delete a task and its subtasks."""
    try:
        count = task.delete_task(task_id)
    except OttoError as e:
        fail(e)
    output_json({"id": task_id, "deleted": count}, ctx) or typer.echo(f"Deleted {count} task(s)")


@task_app.command("list")
def task_list(
    ctx: typer.Context,
    parent: str = typer.Option(None, "--parent", help="Only children of this task"),
    repo: str = typer.Option(None, "--repo", help="Only tasks in this repository"),
    branch: str = typer.Option(None, "--branch", help="Only tasks on this branch"),
    include_deleted: bool = typer.Option(False, "--deleted", help="Include deleted tasks"),
):
    """List tasks."""
    try:
        tasks = task.list_tasks(
            parent_id=parent, repo_path=repo, branch=branch, include_deleted=include_deleted
        )
    except (OttoError, ValueError) as e:
        fail(e)
    if output_json([asdict(t) for t in tasks], ctx):
        return
    if not tasks:
        typer.echo("No tasks")
        return
    for t in tasks:
        indent = "  " if t.parent_id else ""
        typer.echo(f"{indent}{t.id} [{t.status.value}] {t.title}")


def main() -> None:
    """`otto` console script. Interrupts and unmapped domain errors exit 1."""
    try:
        app()
    except (KeyboardInterrupt, OttoError) as e:
        logging.getLogger(__name__).debug(f"otto aborted: {e!r}")
        raise SystemExit(1) from e
