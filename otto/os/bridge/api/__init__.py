"""Bridge operations: the message store and the bus built on it.

Store: create, get, list with filters, mark read.
Bus: ask (sets waiting), say, prompt a worker, complete, inbox.
"""

from .messages import (
    create_message,
    get_message,
    list_messages,
    mark_all_read,
    mark_read,
    new_message_id,
    pending_prompt,
)
from .messaging import ask, complete, inbox, prompt, say, visible_to

__all__ = [
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
