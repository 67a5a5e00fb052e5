from . import bridge, spawn, task

__all__ = ["bridge", "spawn", "task"]
