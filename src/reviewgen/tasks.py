"""Cancellable periodic background tasks on the running event loop."""

import asyncio
import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a synchronous callback every ``interval`` seconds.

    The callback runs on the event loop thread between awaits, so it sees
    shared state without interleaving. Exceptions raised by the callback are
    logged and the loop keeps running.

    Example:
        sweep = PeriodicTask("cache-sweep", 3600, cache.cleanup_cache)
        sweep.start()
        ...
        await sweep.stop()
    """

    def __init__(self, name: str, interval: float, callback: Callable[[], object]):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop (idempotent).

        Raises:
            RuntimeError: If called without a running event loop
        """
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=self.name
        )
        logger.debug(f"Started periodic task {self.name} every {self.interval}s")

    async def stop(self) -> None:
        """Cancel the loop and wait until it has exited."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug(f"Stopped periodic task {self.name}")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Periodic task {self.name} failed: {e}")
