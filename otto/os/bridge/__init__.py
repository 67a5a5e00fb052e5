from . import api
from .api import (
    ask,
    complete,
    create_message,
    get_message,
    inbox,
    list_messages,
    mark_all_read,
    mark_read,
    new_message_id,
    pending_prompt,
    prompt,
    say,
    visible_to,
)

__all__ = [
    "api",
    "ask",
    "complete",
    "create_message",
    "get_message",
    "inbox",
    "list_messages",
    "mark_all_read",
    "mark_read",
    "new_message_id",
    "pending_prompt",
    "prompt",
    "say",
    "visible_to",
]
