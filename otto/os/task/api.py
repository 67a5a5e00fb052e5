"""Task operations: persistent work items scoped to a repo and branch."""

from datetime import datetime

from otto.core.models import Task, TaskStatus
from otto.errors import NotFoundError
from otto.lib import ids, store
from otto.lib.config import Config
from otto.lib.store import from_row

_COLUMNS = "id, parent_id, title, status, notes, created_at, updated_at, deleted_at, repo_path, branch"


def _row_to_task(row: store.Row) -> Task:
    task = from_row(row, Task)
    task.status = TaskStatus(task.status)
    return task


def create_task(
    title: str,
    parent_id: str | None = None,
    notes: str | None = None,
    repo_path: str = "",
    branch: str = "",
    config: Config | None = None,
) -> Task:
    if not title:
        raise ValueError("Task title cannot be empty")
    if parent_id is not None:
        parent = get_task(parent_id)
        if parent.deleted:
            raise NotFoundError(f"Task '{parent_id}' not found")

    now = datetime.now().isoformat()
    task = Task(
        id=ids.generate_task_id(config),
        parent_id=parent_id,
        title=title,
        status=TaskStatus.OPEN,
        notes=notes,
        created_at=now,
        updated_at=now,
        repo_path=repo_path,
        branch=branch,
    )
    with store.guard(f"create task {task.id}"), store.ensure() as conn:
        conn.execute(
            f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.id,
                task.parent_id,
                task.title,
                task.status.value,
                task.notes,
                task.created_at,
                task.updated_at,
                None,
                task.repo_path,
                task.branch,
            ),
        )
    return task


def get_task(task_id: str) -> Task:
    """Fetch a task, soft-deleted ones included (check `deleted`)."""
    with store.guard(f"get task {task_id}"), store.ensure() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (task_id,)).fetchone()
    if row is None:
        raise NotFoundError(f"Task '{task_id}' not found")
    return _row_to_task(row)


def update_task(
    task_id: str,
    title: str | None = None,
    status: TaskStatus | str | None = None,
    notes: str | None = None,
) -> Task:
    """Update only the given fields. Deleted tasks count as missing."""
    updates = ["updated_at = ?"]
    values: list[object] = [datetime.now().isoformat()]
    if title is not None:
        if not title:
            raise ValueError("Task title cannot be empty")
        updates.append("title = ?")
        values.append(title)
    if status is not None:
        updates.append("status = ?")
        values.append(TaskStatus(status).value)
    if notes is not None:
        updates.append("notes = ?")
        values.append(notes)

    values.append(task_id)
    sql = f"UPDATE tasks SET {', '.join(updates)} WHERE id = ? AND deleted_at IS NULL"
    with store.guard(f"update task {task_id}"), store.ensure() as conn:
        cursor = conn.execute(sql, values)
    if cursor.rowcount == 0:
        raise NotFoundError(f"Task '{task_id}' not found")
    return get_task(task_id)


def delete_task(task_id: str) -> int:
    """Soft-delete a task and its live descendants. Returns rows marked."""
    now = datetime.now().isoformat()
    with store.transaction(f"delete task {task_id}") as conn:
        rows = conn.execute(
            """
            WITH RECURSIVE subtree(id) AS (
                SELECT id FROM tasks WHERE id = ? AND deleted_at IS NULL
                UNION
                SELECT t.id FROM tasks t JOIN subtree s ON t.parent_id = s.id
                WHERE t.deleted_at IS NULL
            )
            SELECT id FROM subtree
            """,
            (task_id,),
        ).fetchall()
        if not rows:
            raise NotFoundError(f"Task '{task_id}' not found")
        subtree = [row["id"] for row in rows]
        placeholders = ", ".join("?" * len(subtree))
        conn.execute(
            f"UPDATE tasks SET deleted_at = ?, updated_at = ? WHERE id IN ({placeholders})",
            (now, now, *subtree),
        )
        return len(subtree)


def list_tasks(
    parent_id: str | None = None,
    roots_only: bool = False,
    repo_path: str | None = None,
    branch: str | None = None,
    status: TaskStatus | str | None = None,
    include_deleted: bool = False,
) -> list[Task]:
    query = f"SELECT {_COLUMNS} FROM tasks WHERE 1=1"
    params: list[object] = []

    if parent_id is not None:
        query += " AND parent_id = ?"
        params.append(parent_id)
    elif roots_only:
        query += " AND parent_id IS NULL"

    if repo_path is not None:
        query += " AND repo_path = ?"
        params.append(repo_path)

    if branch is not None:
        query += " AND branch = ?"
        params.append(branch)

    if status is not None:
        query += " AND status = ?"
        params.append(TaskStatus(status).value)

    if not include_deleted:
        query += " AND deleted_at IS NULL"

    query += " ORDER BY created_at, rowid"

    with store.guard("list tasks"), store.ensure() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_task(row) for row in rows]
