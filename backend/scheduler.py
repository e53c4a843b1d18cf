"""Fixed-interval periodic tasks for the per-connection stress and game loops"""
from typing import Callable, Optional
import asyncio
import contextlib
import logging
import time


class PeriodicTask:
    """Runs a synchronous callback every `interval` seconds on the event loop.

    The next run is scheduled only after the callback returns, so runs never
    overlap. The callback's own duration is subtracted from the sleep, and a
    run that overshoots the interval is followed immediately by the next one
    rather than by a burst of catch-up runs.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "periodic"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self):
        while True:
            started = time.monotonic()
            try:
                self.callback()
            except Exception as e:
                logging.error(f"Periodic task {self.name} failed: {e}", exc_info=True)
            self.runs += 1
            spent = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.interval - spent))

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logging.debug(f"Periodic task {self.name} started every {self.interval}s")

    async def stop(self):
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logging.debug(f"Periodic task {self.name} stopped after {self.runs} runs")
