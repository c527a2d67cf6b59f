"""Debounced persistence of the user-state blob"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from idealtwin.config import SAVE_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)


class DebouncedSaver:
    """
    Coalesces bursts of state changes into a single save.

    Every schedule() restarts the timer; the save runs once the state has
    been quiet for `delay` seconds. The save callable reads the state at
    fire time, so the last write always wins.
    """

    def __init__(self, save: Callable[[], Awaitable[Any]], delay: float = SAVE_DEBOUNCE_SECONDS):
        """
        Args:
            save: Coroutine function persisting the current state
            delay: Quiet period in seconds before saving (default: 2s)
        """
        self._save = save
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a save is scheduled but has not started"""
        return self._task is not None and not self._task.done()

    async def _run_save(self) -> None:
        try:
            await self._save()
        except Exception as e:
            logger.error(f"Debounced save failed: {e}", exc_info=True)

    async def _wait_and_save(self) -> None:
        await asyncio.sleep(self.delay)
        # Detach before saving so a new schedule() cannot cancel a running save
        self._task = None
        await self._run_save()

    def schedule(self) -> None:
        """(Re)start the debounce timer"""
        if self.pending:
            self._task.cancel()
        self._task = asyncio.create_task(self._wait_and_save())
        logger.debug(f"Save scheduled in {self.delay}s")

    async def cancel(self) -> None:
        """Drop the pending save, if any"""
        if self._task is None:
            return

        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def flush(self) -> None:
        """Run the pending save now instead of waiting for the timer"""
        if not self.pending:
            return
        await self.cancel()
        await self._run_save()
        logger.debug("Pending save flushed")
