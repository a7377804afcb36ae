"""
Single-consumer FIFO queue for rate-limited Discord operations.

Thread creation and renames share one Discord rate-limit budget, so every such
call is funnelled through one :class:`RateLimitedTaskQueue` that runs them one
at a time. A task rejected with HTTP 429 goes back to the *front* of the queue
and is retried after the server's ``retry_after`` (or an exponential backoff),
so submission order is preserved once the limiter clears.
"""

from __future__ import annotations

import asyncio
import collections
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque

from introcord.util.discord_utils import get_retry_after, is_rate_limited
from introcord.util.logger import get_logger

logger = get_logger("task_queue")

TaskAction = Callable[[], Awaitable[Any]]


@dataclass
class QueuedTask:
    """A zero-argument coroutine factory plus the future its caller may await."""

    action: TaskAction
    future: asyncio.Future
    name: str = "task"
    attempts: int = 0


def _consume_exception(future: asyncio.Future) -> None:
    # Marks the exception as retrieved so fire-and-forget callers do not
    # trigger "exception was never retrieved" warnings; awaiting still raises.
    if not future.cancelled():
        future.exception()


class RateLimitedTaskQueue:
    """
    Serialize side-effecting Discord calls with self-healing backoff.

    Args:
        base_delay: Backoff floor in seconds; the delay resets here after a success.
        max_delay: Backoff ceiling in seconds.
        inter_task_delay: Pause after each successful task.
    """

    def __init__(
        self,
        *,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        inter_task_delay: float = 0.1,
    ) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.inter_task_delay = inter_task_delay
        self.retry_delay = base_delay
        self._queue: Deque[QueuedTask] = collections.deque()
        self._runner_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def is_running(self) -> bool:
        return self._runner_task is not None and not self._runner_task.done()

    def enqueue(self, action: TaskAction, *, name: str = "task") -> asyncio.Future:
        """
        Append ``action`` to the queue and start the consumer if it is idle.

        Returns immediately with a future that resolves to the action's result,
        or carries its exception if it failed with anything other than a rate
        limit. Callers that do not need the result may ignore the future.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        future.add_done_callback(_consume_exception)
        self._queue.append(QueuedTask(action=action, future=future, name=name))
        logger.debug("[TASK QUEUE] Enqueued %s (queue length=%d)", name, len(self._queue))
        self.ensure_runner()
        return future

    def ensure_runner(self) -> None:
        """Create the consumer task if it is not already active."""
        if not self.is_running:
            loop = asyncio.get_running_loop()
            self._runner_task = loop.create_task(self.run(), name="introcord-task-queue")

    async def run(self) -> None:
        """Drain the queue head-first until it is empty, then exit."""
        while self._queue:
            task = self._queue.popleft()
            if task.future.done():
                # Cancelled by the caller before it ran
                continue

            task.attempts += 1
            try:
                result = await task.action()
            except asyncio.CancelledError:
                self._queue.appendleft(task)
                raise
            except Exception as exc:
                if is_rate_limited(exc):
                    retry_after = get_retry_after(exc)
                    delay = retry_after if retry_after is not None else self.retry_delay
                    logger.warning(
                        "[TASK QUEUE] Rate limited on %s (attempt %d), retrying in %.2fs",
                        task.name, task.attempts, delay,
                    )
                    self._queue.appendleft(task)
                    await asyncio.sleep(delay)
                    self.retry_delay = min(self.retry_delay * 2, self.max_delay)
                    continue

                logger.error("[TASK QUEUE] Task %s failed and was dropped: %s", task.name, exc)
                if not task.future.done():
                    task.future.set_exception(exc)
                continue

            if not task.future.done():
                task.future.set_result(result)
            self.retry_delay = self.base_delay
            await asyncio.sleep(self.inter_task_delay)

        logger.debug("[TASK QUEUE] Queue drained, consumer stopping")

    async def join(self) -> None:
        """Wait until the consumer has drained the queue."""
        while self.is_running:
            await asyncio.shield(self._runner_task)

    async def shutdown(self) -> None:
        """Stop the consumer and cancel every task that has not run yet."""
        if self._runner_task and not self._runner_task.done():
            self._runner_task.cancel()
            try:
                await self._runner_task
            except asyncio.CancelledError:
                pass
        self._runner_task = None

        while self._queue:
            task = self._queue.popleft()
            if not task.future.done():
                task.future.cancel()

        logger.info("[TASK QUEUE] Task queue shutdown complete")
