from __future__ import annotations

import re
import secrets

from otto.errors import IdentifierExhaustedError
from otto.lib import config as config_module
from otto.lib import store
from otto.lib.config import Config

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def slugify(task: str, max_length: int = 16, fallback: str = "agent") -> str:
    """Lowercase alphanumeric slug of a task description.

    "auth backend" -> "authbackend"; "!!!" -> fallback.
    """
    slug = _NON_ALNUM.sub("", task.lower())[:max_length]
    return slug or fallback


def generate_agent_id(task: str, config: Config | None = None) -> str:
    """Derive a free agent id from a task: slug, then slug-2, slug-3, ..."""
    config = config_module.resolve(config)
    base = slugify(task, config.slug_max_length, config.slug_fallback)

    with store.guard("check agent ids"), store.ensure() as conn:
        rows = conn.execute(
            "SELECT id FROM agents WHERE id = ? OR id LIKE ?",
            (base, f"{base}-%"),
        ).fetchall()
    taken = {row[0] for row in rows}

    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def _random_task_id() -> str:
    return f"t-{secrets.token_hex(3)[:5]}"


def generate_task_id(config: Config | None = None) -> str:
    """Allocate an unused task id of the form t-xxxxx.

    The id space is ~2^20, so running out of attempts means something is
    wrong with the store or the random source, not bad luck.
    """
    config = config_module.resolve(config)
    for _ in range(config.task_id_attempts):
        candidate = _random_task_id()
        with store.guard("check task ids"), store.ensure() as conn:
            taken = conn.execute("SELECT 1 FROM tasks WHERE id = ?", (candidate,)).fetchone()
        if not taken:
            return candidate
    raise IdentifierExhaustedError(
        f"could not allocate a task id after {config.task_id_attempts} attempts"
    )


__all__ = ["slugify", "generate_agent_id", "generate_task_id"]
