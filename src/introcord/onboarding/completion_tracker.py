"""
In-memory record of which onboarding forms each user has submitted.

Records expire a fixed TTL after their last update. Expiry times live in a
min-heap with lazy invalidation, so a sweep only pops the entries that are
actually due instead of scanning every user. Refreshing a record pushes a new
heap entry and leaves the old one behind as stale; stale entries are skipped
when they surface.
"""

from __future__ import annotations

import heapq
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet

from introcord.scheduler.periodic_task import PeriodicTask
from introcord.util.logger import get_logger

logger = get_logger("completion_tracker")

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


class FormType(str, Enum):
    INTRO = "intro"
    WORKING = "working"
    SHOWCASE = "showcase"


PROJECT_FORMS = frozenset({FormType.WORKING, FormType.SHOWCASE})


@dataclass
class CompletionRecord:
    completions: set[FormType] = field(default_factory=set)
    timestamp: float = 0.0

    @property
    def is_fully_complete(self) -> bool:
        return FormType.INTRO in self.completions and bool(self.completions & PROJECT_FORMS)


class CompletionTracker:
    """
    Track per-user form completions and decide when a user qualifies for the role.

    Args:
        ttl_seconds: Age after which a record is evicted, regardless of progress.
        sweep_interval: Seconds between eviction sweeps.
        clock: Returns the current time in seconds; injectable for tests.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.records: Dict[str, CompletionRecord] = {}
        self.expiry_heap: list[tuple[float, str]] = []
        self._sweeper = PeriodicTask("COMPLETIONS", self._sweep_tick, lambda: sweep_interval)

    def __len__(self) -> int:
        return len(self.records)

    def record_completion(self, user_id: str, form_type: FormType) -> CompletionRecord:
        """Add ``form_type`` to the user's completions and refresh the record's timestamp."""
        user_id = str(user_id)
        now = self.clock()
        record = self.records.setdefault(user_id, CompletionRecord())
        record.completions.add(FormType(form_type))
        record.timestamp = now
        heapq.heappush(self.expiry_heap, (now + self.ttl_seconds, user_id))
        logger.debug(
            "[COMPLETIONS] User %s completed %s (now: %s)",
            user_id, FormType(form_type).value, sorted(f.value for f in record.completions),
        )
        return record

    def is_fully_complete(self, user_id: str) -> bool:
        """True once the user has the intro form plus either project form."""
        record = self.records.get(str(user_id))
        return record is not None and record.is_fully_complete

    def get_completions(self, user_id: str) -> FrozenSet[FormType]:
        record = self.records.get(str(user_id))
        return frozenset(record.completions) if record else frozenset()

    def forget(self, user_id: str) -> bool:
        """Drop a user's record; its heap entries become stale."""
        return self.records.pop(str(user_id), None) is not None

    def sweep_expired(self) -> int:
        """
        Evict every record whose last update is older than the TTL.

        Returns:
            int: Number of records evicted.
        """
        now = self.clock()
        evicted = 0
        while self.expiry_heap and self.expiry_heap[0][0] <= now:
            expires_at, user_id = heapq.heappop(self.expiry_heap)
            record = self.records.get(user_id)
            # Stale entry: the record was refreshed or forgotten after this push
            if record is None or record.timestamp + self.ttl_seconds != expires_at:
                continue
            del self.records[user_id]
            evicted += 1

        if evicted:
            logger.info("[COMPLETIONS] Evicted %d expired completion records", evicted)
        return evicted

    async def _sweep_tick(self) -> None:
        self.sweep_expired()

    def start(self) -> None:
        self._sweeper.start()

    async def shutdown(self) -> None:
        await self._sweeper.shutdown()
        self.records.clear()
        self.expiry_heap.clear()
        logger.info("[COMPLETIONS] Completion tracker shutdown complete")
