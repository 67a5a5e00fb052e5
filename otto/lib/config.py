from dataclasses import dataclass, fields
from functools import lru_cache

import yaml

from . import paths


@dataclass(frozen=True)
class Config:
    """Settings passed explicitly into operations that need them."""

    orchestrator_id: str = "orchestrator"
    slug_max_length: int = 16
    slug_fallback: str = "agent"
    task_id_attempts: int = 10
    spawn_timeout: float | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


def clear_cache():
    load_config.cache_clear()


@lru_cache(maxsize=1)
def load_config() -> dict:
    """Load the config.yaml file, returning its content or an empty dict if not found."""
    path = paths.config_file()
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load() -> Config:
    return Config.from_dict(load_config())


def resolve(config: Config | None) -> Config:
    return config if config is not None else load()
