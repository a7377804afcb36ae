"""Reusable fixed-interval background task.

Runs a zero-argument coroutine, sleeps for the interval, repeats. Handles
lifecycle (start/shutdown) and keeps one failed tick from killing the loop.
The reminder sweep and the completion eviction each own one of these, on
independent cadences.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from introcord.util.logger import get_logger

logger = get_logger("periodic_task")


class PeriodicTask:
    """
    Args:
        name: Human-readable name for logging (e.g., "REMINDERS").
        tick: Async callable invoked once per interval.
        get_interval: Callable returning the interval in seconds (called at start).
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Awaitable[Any]],
        get_interval: Callable[[], float],
    ) -> None:
        self._name = name
        self._tick = tick
        self._get_interval = get_interval
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: tick, sleep, repeat."""
        logger.info("[%s] Starting periodic task (interval=%.1fs)", self._name, interval)
        try:
            while True:
                try:
                    await self._tick()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[%s] Unexpected error during periodic run: %s", self._name, exc)
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("[%s] Periodic task cancelled", self._name)
            raise

    def start(self) -> None:
        """Start the background task if not already running."""
        if self.is_running:
            logger.warning("[%s] Periodic task already running", self._name)
            return
        interval = self._get_interval()
        self._task = asyncio.create_task(self._run_loop(interval), name=f"introcord-{self._name.lower()}")

    async def shutdown(self) -> None:
        """Cancel the loop and wait for it to exit."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        logger.info("[%s] Periodic task shutdown complete", self._name)
