class OttoError(Exception):
    """Base exception for otto domain errors."""

    pass


class NotFoundError(OttoError):
    """Raised when an agent, message or task lookup misses."""

    pass


class InvalidTransitionError(OttoError):
    """Raised when an agent status change violates the lifecycle."""

    def __init__(self, agent_id: str, current: str, target: str):
        self.agent_id = agent_id
        self.current = current
        self.target = target
        super().__init__(f"Agent '{agent_id}' cannot move from {current} to {target}")


class NoPromptFoundError(OttoError):
    """Raised when a worker turn starts without a pending prompt."""

    pass


class StorageError(OttoError):
    """Raised when the underlying store rejects a read or write."""

    pass


class IdentifierExhaustedError(OttoError):
    """Raised when no free identifier could be allocated."""

    pass


class RunnerError(OttoError):
    """Raised when an external process cannot start or exits badly."""

    pass
