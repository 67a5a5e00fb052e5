"""Worker prompt assembly."""

SPAWN_PROMPT_TEMPLATE = """\
You are {agent_id}, a worker agent coordinated by otto.

TASK:
{task}
{files}{context}
COMMUNICATION:
- otto messages --id {agent_id}: read messages addressed to you
- otto say "text" --id {agent_id}: post progress for everyone
- otto ask "question" --id {agent_id}: ask the orchestrator; you wait for a reply
- otto complete "summary" --id {agent_id}: report that your task is done

Mention another agent with @agent-id so it sees your message."""

FILES_TEMPLATE = """
FILES:
{files}
"""

CONTEXT_TEMPLATE = """
CONTEXT:
{context}
"""


def build_spawn_prompt(
    agent_id: str, task: str, files: str | None = None, context: str | None = None
) -> str:
    return SPAWN_PROMPT_TEMPLATE.format(
        agent_id=agent_id,
        task=task,
        files=FILES_TEMPLATE.format(files=files) if files else "",
        context=CONTEXT_TEMPLATE.format(context=context) if context else "",
    )
