def _default_empty_sets(conn):
    """Older rows may carry NULL set columns; membership queries need JSON arrays."""
    conn.execute("UPDATE messages SET mentions = '[]' WHERE mentions IS NULL OR mentions = ''")
    conn.execute("UPDATE messages SET read_by = '[]' WHERE read_by IS NULL OR read_by = ''")


MIGRATIONS = [
    (
        "schema_v1",
        """
CREATE TABLE IF NOT EXISTS agents (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    task TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'working',
    session_id TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    from_id TEXT NOT NULL,
    to_id TEXT,
    type TEXT NOT NULL,
    content TEXT NOT NULL,
    mentions TEXT NOT NULL DEFAULT '[]',
    requires_human INTEGER NOT NULL DEFAULT 0,
    read_by TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS logs (
    agent_id TEXT NOT NULL,
    direction TEXT NOT NULL,
    stream TEXT NOT NULL,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    parent_id TEXT,
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open',
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT,
    repo_path TEXT NOT NULL DEFAULT '',
    branch TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_messages_created ON messages(created_at);
CREATE INDEX IF NOT EXISTS idx_agents_status ON agents(status);
CREATE INDEX IF NOT EXISTS idx_logs_agent ON logs(agent_id, direction);
""",
    ),
    (
        "default_empty_sets",
        _default_empty_sets,
    ),
    (
        "tasks_scope_index",
        "CREATE INDEX IF NOT EXISTS idx_tasks_scope ON tasks(repo_path, branch, parent_id)",
    ),
]
