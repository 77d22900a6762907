"""Background execution of long-running bulk operation stages."""

import asyncio
import contextvars
from collections.abc import Awaitable, Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import Any

from src.bulkops.core.exceptions import IllegalOperationStateError
from src.bulkops.core.logging import get_logger

logger = get_logger(__name__)


class BackgroundExecutor:
    """Unbounded pool of asyncio tasks that inherit the dispatching context.

    Each submitted stage runs in a copy of the caller's contextvars (request
    context, structlog bindings) taken at submit time. At most one task per
    key runs at a time, and a key can be reserved while its stage is being
    prepared.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._keys: dict[Hashable, asyncio.Task[None]] = {}
        self._reserved: set[Hashable] = set()

    @property
    def in_flight_count(self) -> int:
        """Number of stages currently running."""
        return len(self._tasks)

    def is_running(self, key: Hashable) -> bool:
        """Check whether a stage is running or being prepared for the given key."""
        return key in self._keys or key in self._reserved

    @contextmanager
    def reserve(self, key: Hashable) -> Iterator[None]:
        """Hold key until the block exits so no other caller can start a stage for it.

        The holder may submit under key inside the block.

        Raises:
            IllegalOperationStateError: If key is running or already reserved
        """
        if self.is_running(key):
            raise IllegalOperationStateError(f"Bulk operation {key} is already being processed")
        self._reserved.add(key)
        try:
            yield
        finally:
            self._reserved.discard(key)

    def submit(
        self,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        key: Hashable | None = None,
    ) -> asyncio.Task[None]:
        """Schedule fn(*args) and return without waiting for it.

        Raises:
            IllegalOperationStateError: If a task for key is still running
        """
        if key is not None and key in self._keys:
            raise IllegalOperationStateError(f"Bulk operation {key} is already being processed")

        context = contextvars.copy_context()
        task = asyncio.get_running_loop().create_task(
            self._run(fn, *args), context=context
        )
        self._tasks.add(task)
        if key is not None:
            self._keys[key] = task
        task.add_done_callback(lambda t: self._forget(t, key))
        return task

    async def _run(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        name = getattr(fn, "__name__", repr(fn))
        try:
            await fn(*args)
        except Exception:
            logger.exception("Background stage failed", stage=name)

    def _forget(self, task: asyncio.Task[None], key: Hashable | None) -> None:
        self._tasks.discard(task)
        if key is not None and self._keys.get(key) is task:
            del self._keys[key]

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait for all in-flight stages to finish.

        Args:
            timeout: Maximum time to wait in seconds, None waits forever

        Returns:
            True if every stage finished within timeout, False otherwise
        """
        while self._tasks:
            pending = list(self._tasks)
            done, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.warning(
                    f"Drain timeout after {timeout}s - {len(not_done)} stages still running"
                )
                return False
        return True


# Global executor instance
background_executor = BackgroundExecutor()
