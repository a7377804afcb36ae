"""
Runtime service container.

:class:`BotServices` owns every stateful component of the bot (guild config
store, thread task queue, thread service, reminders, completions, intro flow).
It is built once at startup and handed to each cog's ``setup``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import discord

from introcord.configuration.app_configuration import AppConfig
from introcord.configuration.guild_config_store import GuildConfigStore
from introcord.onboarding.completion_tracker import CompletionTracker
from introcord.onboarding.intro_flow import IntroFlowService
from introcord.onboarding.reminder_scheduler import ReminderScheduler
from introcord.threads.task_queue import RateLimitedTaskQueue
from introcord.threads.thread_service import ThreadService
from introcord.util.logger import get_logger

logger = get_logger("services")


@dataclass
class BotServices:
    settings: AppConfig
    store: GuildConfigStore
    queue: RateLimitedTaskQueue
    threads: ThreadService
    completions: CompletionTracker
    reminders: ReminderScheduler
    intro_flow: IntroFlowService
    started_at: float = field(default_factory=time.time)
    _started: bool = False

    @classmethod
    def from_config(cls, settings: AppConfig, bot: discord.Bot) -> "BotServices":
        """Wire up every service from the application config."""
        store = GuildConfigStore(settings.guild_config_dir)
        queue = RateLimitedTaskQueue(**settings.task_queue_settings)
        threads = ThreadService(store, queue)
        completions = CompletionTracker(
            ttl_seconds=settings.completion_ttl_seconds,
            sweep_interval=settings.completion_sweep_interval,
        )
        reminders = ReminderScheduler(
            delay_seconds=settings.reminder_delay_seconds,
            check_interval=settings.reminder_check_interval,
        )
        intro_flow = IntroFlowService(bot, settings, threads, completions, reminders)
        reminders.set_delivery(intro_flow.deliver_reminder)

        return cls(
            settings=settings,
            store=store,
            queue=queue,
            threads=threads,
            completions=completions,
            reminders=reminders,
            intro_flow=intro_flow,
        )

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.started_at

    def start(self) -> None:
        """Start the background sweeps. Safe to call on every reconnect."""
        if self._started:
            return
        self.reminders.start()
        self.completions.start()
        self._started = True
        logger.info("[SERVICES] Background services started")

    async def shutdown(self) -> None:
        """Stop background work and drain pending config writes."""
        for name, closer in (
            ("reminders", self.reminders.shutdown),
            ("completions", self.completions.shutdown),
            ("task queue", self.queue.shutdown),
            ("guild config store", self.store.shutdown),
        ):
            try:
                await closer()
            except Exception as exc:
                logger.exception("[SERVICES] Error during %s shutdown: %s", name, exc)
        self._started = False
        logger.info("[SERVICES] Services shutdown complete")
