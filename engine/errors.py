"""
Engine Errors
Failures raised while generating, persisting or automating a session. None of
them stops the scheduler loop; the affected session is skipped for the poll.
"""

from typing import Optional

from mapgen.errors import ConfigurationError, GenerationError

__all__ = [
    "AutomationError",
    "ConfigurationError",
    "GenerationError",
    "PersistenceError",
]


class PersistenceError(RuntimeError):
    """A repository call failed or timed out"""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"Repository operation '{operation}' failed"
        if cause is not None:
            message += f": {cause!r}"
        super().__init__(message)


class AutomationError(RuntimeError):
    """A unit or settlement update failed"""

    def __init__(self, entity_id: str, cause: Exception):
        self.entity_id = entity_id
        self.cause = cause
        super().__init__(f"Automation failed for {entity_id}: {cause}")
