"""
Async Repository Gateway
Runs synchronous repository calls off the event loop with a timeout.
"""

import asyncio
import logging
from typing import Any

from engine.db.repositories.base import GameRepository
from engine.errors import PersistenceError

logger = logging.getLogger(__name__)


class RepositoryGateway:
    """
    Awaitable access to a GameRepository.

    Every call runs in a worker thread and is bounded by timeout_s; timeouts
    and repository exceptions are raised as PersistenceError.
    """

    def __init__(self, repository: GameRepository, timeout_s: float = 5.0):
        self.repository = repository
        self.timeout_s = timeout_s

    async def call(self, operation: str, *args, **kwargs) -> Any:
        """
        Invoke repository.<operation>(*args, **kwargs).

        Raises:
            PersistenceError: on timeout or any repository failure
        """
        method = getattr(self.repository, operation)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(method, *args, **kwargs),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Repository call {operation} timed out after {self.timeout_s}s")
            raise PersistenceError(operation, e) from e
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(operation, e) from e
