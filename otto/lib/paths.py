import os
from pathlib import Path

DB_FILE = "otto.db"


def dot_otto() -> Path:
    override = os.environ.get("OTTO_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".otto"


def db_path() -> Path:
    return dot_otto() / DB_FILE


def config_file() -> Path:
    return dot_otto() / "config.yaml"
