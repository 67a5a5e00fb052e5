"""Task primitive: persistent, soft-deletable work items for the orchestrator."""

from .api import create_task, delete_task, get_task, list_tasks, update_task

__all__ = [
    "create_task",
    "delete_task",
    "get_task",
    "list_tasks",
    "update_task",
]
