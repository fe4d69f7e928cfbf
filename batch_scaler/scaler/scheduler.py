import asyncio
import logging
from typing import Optional, Set

from .controller import BatchScalingController

logger = logging.getLogger(__name__)


class ScalingScheduler:
    """Fires the controller's tick on a fixed cadence.

    Each firing runs as its own task, so a slow tick does not shift the
    cadence. Overlapping firings are skipped by the controller's lock.
    """

    def __init__(self, controller: BatchScalingController, interval: float = 30.0):
        self.controller = controller
        self.interval = interval
        self.running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """Start the tick loop. The first tick fires immediately."""
        if self.running:
            return
        if not self.controller.enabled:
            logger.info("Scaling controller disabled, scheduler not started")
            return

        self.running = True
        self._loop_task = asyncio.create_task(self._tick_loop())
        logger.info(f"Scaling scheduler started (every {self.interval}s)")

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while self.running:
            self._spawn_tick()
            next_run += self.interval
            now = loop.time()
            if next_run <= now:
                # Slots missed while the loop was stalled are dropped, not replayed
                next_run = now + self.interval
            await asyncio.sleep(next_run - now)

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.controller.tick())
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task) -> None:
        self._tick_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error in scaling tick: {str(error)}")

    async def stop(self) -> None:
        """Stop firing ticks and wait for an in-flight tick to finish."""
        logger.info("Stopping scaling scheduler")
        self.running = False

        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)
        logger.info("Scaling scheduler stopped")
