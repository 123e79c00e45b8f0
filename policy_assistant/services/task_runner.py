"""Fire-and-forget execution of background pipeline runs."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Dict, Hashable

from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BackgroundTaskRunner:
    """Detached asyncio tasks with at most one in-flight run per key.

    Request handlers submit work and return immediately. The runner keeps a
    strong reference to each task until it finishes and logs failures that
    escape the submitted coroutine.
    """

    def __init__(self) -> None:
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def submit(self, key: Hashable, factory: Callable[[], Awaitable[None]]) -> bool:
        """Schedule ``factory()`` as a detached task.

        Args:
            key: Identity of the work item (e.g. a query id)
            factory: Zero-argument callable returning the coroutine to run

        Returns:
            True if scheduled, False if a run for ``key`` is still in flight
        """
        existing = self._tasks.get(key)
        if existing is not None and not existing.done():
            LOGGER.warning(f"Background run already in flight for {key}; skipping")
            return False

        task = asyncio.create_task(factory(), name=f"background-{key}")
        self._tasks[key] = task
        task.add_done_callback(lambda finished: self._on_done(key, finished))
        return True

    def is_running(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    @property
    def in_flight(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Wait up to ``timeout`` seconds for in-flight runs, then cancel the rest."""
        pending = [task for task in self._tasks.values() if not task.done()]
        if not pending:
            return

        LOGGER.info(f"Waiting for {len(pending)} background runs to finish")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            LOGGER.warning(f"Cancelled {len(still_running)} background runs at shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)

    def _on_done(self, key: Hashable, task: asyncio.Task) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error(
                f"Background run {key} failed",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
