"""
24 hour "finish your introduction" reminders.

Reminders are kept in memory only and are lost on restart. Each (guild, user)
pair has at most one pending reminder per type. An hourly sweep delivers the
reminders that are due and marks them sent whether or not the DM went
through, so a user with closed DMs is never retried.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from introcord.scheduler.periodic_task import PeriodicTask
from introcord.util.discord_utils import utc_now
from introcord.util.logger import get_logger

logger = get_logger("reminder_scheduler")

INTRO_INCOMPLETE_REMINDER = "24h_intro_incomplete"
DEFAULT_REMINDER_DELAY_SECONDS = 24 * 60 * 60
DEFAULT_CHECK_INTERVAL_SECONDS = 60 * 60


@dataclass
class Reminder:
    guild_id: str
    user_id: str
    scheduled_for: datetime.datetime
    reminder_type: str = INTRO_INCOMPLETE_REMINDER
    sent: bool = False

    def matches(self, guild_id: str, user_id: str, reminder_type: str) -> bool:
        return (
            self.guild_id == guild_id
            and self.user_id == user_id
            and self.reminder_type == reminder_type
        )


ReminderDelivery = Callable[[Reminder], Awaitable[object]]


class ReminderScheduler:
    """
    Hold pending reminders and fire the due ones on a fixed interval.

    Args:
        deliver: Coroutine that sends one reminder. Exceptions it raises count
            as a failed delivery.
        delay_seconds: How long after scheduling a reminder becomes due.
        check_interval: Seconds between sweeps.
        clock: Returns the current aware datetime; injectable for tests.
    """

    def __init__(
        self,
        deliver: Optional[ReminderDelivery] = None,
        *,
        delay_seconds: float = DEFAULT_REMINDER_DELAY_SECONDS,
        check_interval: float = DEFAULT_CHECK_INTERVAL_SECONDS,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.deliver = deliver
        self.delay = datetime.timedelta(seconds=delay_seconds)
        self.clock = clock
        self.reminders: List[Reminder] = []
        self._sweeper = PeriodicTask("REMINDERS", self.process_due_reminders, lambda: check_interval)

    def set_delivery(self, deliver: ReminderDelivery) -> None:
        self.deliver = deliver

    def _find_pending(self, guild_id: str, user_id: str, reminder_type: str) -> Optional[Reminder]:
        return next(
            (r for r in self.reminders if not r.sent and r.matches(guild_id, user_id, reminder_type)),
            None,
        )

    def schedule_reminder(
        self,
        guild_id: str,
        user_id: str,
        reminder_type: str = INTRO_INCOMPLETE_REMINDER,
    ) -> Reminder:
        """Schedule a reminder for the pair, or return the one already pending."""
        guild_id, user_id = str(guild_id), str(user_id)
        existing = self._find_pending(guild_id, user_id, reminder_type)
        if existing is not None:
            logger.debug("[REMINDERS] Reminder already scheduled for user %s in guild %s", user_id, guild_id)
            return existing

        reminder = Reminder(
            guild_id=guild_id,
            user_id=user_id,
            reminder_type=reminder_type,
            scheduled_for=self.clock() + self.delay,
        )
        self.reminders.append(reminder)
        logger.info("[REMINDERS] Scheduled reminder for user %s at %s", user_id, reminder.scheduled_for.isoformat())
        return reminder

    def cancel_reminder(
        self,
        guild_id: str,
        user_id: str,
        reminder_type: str = INTRO_INCOMPLETE_REMINDER,
    ) -> bool:
        """Remove the pending reminder for the pair. Sent reminders are never removed."""
        reminder = self._find_pending(str(guild_id), str(user_id), reminder_type)
        if reminder is None:
            return False
        self.reminders.remove(reminder)
        logger.info("[REMINDERS] Cancelled reminder for user %s", user_id)
        return True

    def pending_reminders(self, guild_id: Optional[str] = None, user_id: Optional[str] = None) -> List[Reminder]:
        """Un-sent reminders, optionally filtered by guild and/or user."""
        return [
            r for r in self.reminders
            if not r.sent
            and (guild_id is None or r.guild_id == str(guild_id))
            and (user_id is None or r.user_id == str(user_id))
        ]

    async def process_due_reminders(self) -> int:
        """
        Deliver every pending reminder whose time has come.

        Returns:
            int: Number of reminders processed (delivered or failed).
        """
        now = self.clock()
        due = [r for r in self.reminders if not r.sent and r.scheduled_for <= now]
        logger.debug("[REMINDERS] Processing %d due reminders", len(due))

        for reminder in due:
            try:
                if self.deliver is None:
                    raise RuntimeError("no reminder delivery configured")
                await self.deliver(reminder)
                logger.info("[REMINDERS] Sent reminder to user %s", reminder.user_id)
            except Exception as exc:
                logger.warning("[REMINDERS] Could not send reminder to user %s: %s", reminder.user_id, exc)
            reminder.sent = True

        return len(due)

    def start(self) -> None:
        self._sweeper.start()

    async def shutdown(self) -> None:
        await self._sweeper.shutdown()
        logger.info("[REMINDERS] Reminder scheduler shutdown complete (%d pending dropped)", len(self.pending_reminders()))
