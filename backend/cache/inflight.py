"""
In-Flight Registry

Coalesces concurrent work for the same key: the first caller starts a task,
callers arriving before it settles await that same task instead of starting
their own. The entry is dropped as soon as the task settles, on success or
failure, so the next caller starts fresh.

A caller arriving in the instant between settlement and removal may either
join the settled task or start a new one; both outcomes are acceptable.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    """
    Map of key -> running asyncio.Task.

    Usage:
        registry = InFlightRegistry()
        value, joined = await registry.run("someone", lambda: fetch("someone"))
    """

    def __init__(self):
        self._tasks: Dict[str, "asyncio.Task[T]"] = {}

    def try_join(self, key: str) -> Optional["asyncio.Task[T]"]:
        """Return the pending task for `key`, if any."""
        return self._tasks.get(key)

    def register(self, key: str, task: "asyncio.Task[T]") -> None:
        """
        Register a task for `key`. It is removed automatically when it settles.
        """
        if key in self._tasks and not self._tasks[key].done():
            raise RuntimeError(f"A task is already in flight for '{key}'")
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._on_done(key, t))

    def clear(self, key: str) -> None:
        self._tasks.pop(key, None)

    def _on_done(self, key: str, task: "asyncio.Task[Any]") -> None:
        # Only drop the entry if it still belongs to this task
        if self._tasks.get(key) is task:
            del self._tasks[key]
        # Mark the exception as retrieved when every waiter went away
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"[InFlight] Task for '{key}' failed: {task.exception()!r}")

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
    ) -> Tuple[T, bool]:
        """
        Join the pending task for `key` or start a new one.

        The shared task is shielded: a waiter being cancelled (client
        disconnect) does not cancel the work other waiters depend on.

        Returns:
            (value, joined) where `joined` is True if an existing task was reused.
        """
        pending = self.try_join(key)
        if pending is not None:
            logger.debug(f"[InFlight] Joining pending task for '{key}'")
            return await asyncio.shield(pending), True

        task = asyncio.ensure_future(factory())
        self.register(key, task)
        return await asyncio.shield(task), False

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)


# Global singleton instance
profile_inflight: InFlightRegistry = InFlightRegistry()
