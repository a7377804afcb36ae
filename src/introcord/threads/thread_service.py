"""
Auto-threading side effects.

:class:`ThreadService` joins the pure policy in :mod:`thread_decisions` to the
Discord API. Every thread start and rename goes through the shared
:class:`RateLimitedTaskQueue`; everything else (permission checks, replies,
admin notices) runs inline.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import discord

from introcord.configuration.guild_config import ArchiveDuration, GuildConfig
from introcord.configuration.guild_config_store import GuildConfigStore
from introcord.threads.task_queue import RateLimitedTaskQueue
from introcord.threads.templates import UnknownPlaceholderError, render_template
from introcord.threads.thread_decisions import generate_title, should_create_thread
from introcord.ui.thread_ui import ThreadControlsView
from introcord.util.discord_utils import MAX_THREAD_TITLE_LENGTH, has_manage_guild, send_dm
from introcord.util.logger import get_logger

logger = get_logger("thread_service")


class ThreadService:
    """Create, retitle and rename threads on behalf of the bot."""

    def __init__(self, store: GuildConfigStore, queue: RateLimitedTaskQueue):
        self.store = store
        self.queue = queue

    # ==========================================
    # Titles and replies
    # ==========================================

    def title_for(self, message: Any, config: GuildConfig) -> str:
        """Render the configured title, falling back to the default title on a bad template."""
        try:
            return generate_title(message, config.title_template)
        except UnknownPlaceholderError as exc:
            logger.warning(
                "[THREAD SERVICE] Guild %s has an invalid title template (%s); using the default title",
                config.guild_id, exc,
            )
            return generate_title(message)

    def reply_for(self, message: Any, config: GuildConfig) -> Optional[str]:
        if not config.reply_message:
            return None
        try:
            return render_template(config.reply_message, message)
        except UnknownPlaceholderError as exc:
            logger.warning(
                "[THREAD SERVICE] Guild %s has an invalid reply template (%s); skipping the reply",
                config.guild_id, exc,
            )
            return None

    # ==========================================
    # Thread creation
    # ==========================================

    async def create_thread_for_message(self, message: discord.Message, *, force: bool = False) -> Optional[discord.Thread]:
        """
        Start an auto-thread for ``message`` if the guild's config allows it.

        Args:
            message: The message that was just posted.
            force: Skip the eligibility policy (used by ``/auto-thread test``);
                the permission check still applies.

        Returns:
            The created thread, or None when no thread was created.
        """
        if message.guild is None:
            return None

        config = await self.store.get(str(message.guild.id))
        if not force and not should_create_thread(message, config):
            return None

        channel = message.channel
        bot_member = message.guild.me
        if bot_member is None:
            logger.error("[THREAD SERVICE] Bot member not found in guild %s", message.guild.id)
            return None

        permissions = channel.permissions_for(bot_member)
        if not permissions.create_public_threads:
            logger.warning(
                "[THREAD SERVICE] Missing Create Public Threads permission in #%s (%s)",
                getattr(channel, "name", channel.id), message.guild.id,
            )
            await self.notify_missing_permission(message)
            return None

        title = self.title_for(message, config)
        archive_duration = int(config.archive_duration)

        thread = await self.queue.enqueue(
            lambda: message.create_thread(name=title, auto_archive_duration=archive_duration),
            name=f"create_thread:{message.id}",
        )
        logger.info(
            "[THREAD SERVICE] Created thread \"%s\" (%s) for message %s",
            thread.name, thread.id, message.id,
        )

        reply = self.reply_for(message, config)
        if reply:
            try:
                await thread.send(reply, view=ThreadControlsView(thread.id))
            except discord.HTTPException as exc:
                logger.warning("[THREAD SERVICE] Failed to send reply message in thread %s: %s", thread.id, exc)

        return thread

    async def start_public_thread(
        self,
        message: discord.Message,
        name: str,
        archive_duration: int = ArchiveDuration.ONE_DAY,
    ) -> discord.Thread:
        """Start a named public thread from a bot post, through the rate-limited queue."""
        return await self.queue.enqueue(
            lambda: message.create_thread(
                name=name[:MAX_THREAD_TITLE_LENGTH] or "New thread",
                auto_archive_duration=int(archive_duration),
            ),
            name=f"create_thread:{message.id}",
        )

    async def notify_missing_permission(self, message: discord.Message) -> bool:
        """DM the first channel member with Manage Server about the missing permission."""
        channel = message.channel
        admin = next((member for member in getattr(channel, "members", []) if has_manage_guild(member)), None)
        if admin is None:
            logger.debug("[THREAD SERVICE] No admin found to notify in channel %s", channel.id)
            return False

        return await send_dm(
            admin,
            content=(
                "⚠️ **Auto-Thread Permission Missing**\n\n"
                f"I don't have permission to create public threads in {channel.mention} ({message.guild.name}).\n\n"
                "Please grant me the **Create Public Threads** permission."
            ),
        )

    # ==========================================
    # Titles after creation
    # ==========================================

    async def update_thread_title(self, message: discord.Message, thread: discord.Thread) -> Optional[asyncio.Future]:
        """
        Recompute the title after ``message`` was edited and queue a rename if it changed.

        Only starters that auto-threading would thread are retitled; threads
        opened by the intro flow or by hand keep their names.

        Returns:
            The rename future, or None if nothing was queued.
        """
        if message.guild is None:
            return None

        config = await self.store.get(str(message.guild.id))
        if not should_create_thread(message, config):
            return None

        if str(thread.id) in config.manually_renamed_threads:
            logger.debug("[THREAD SERVICE] Thread %s was renamed by hand, leaving its title alone", thread.id)
            return None

        new_title = self.title_for(message, config)
        if thread.name == new_title:
            return None

        logger.debug("[THREAD SERVICE] Retitling thread %s to \"%s\"", thread.id, new_title)
        return self.queue.enqueue(lambda: thread.edit(name=new_title), name=f"rename_thread:{thread.id}")

    async def mark_thread_as_manually_renamed(self, guild_id: str, thread_id: str) -> None:
        """Exclude a thread from automatic title updates and persist the change."""
        await self.store.modify(
            str(guild_id),
            lambda config: config.manually_renamed_threads.add(str(thread_id)),
        )
        logger.info("[THREAD SERVICE] Thread %s in guild %s marked as manually renamed", thread_id, guild_id)

    async def rename_thread(self, thread: discord.Thread, name: str) -> str:
        """Apply a human rename through the queue, then protect it from auto-titling."""
        new_name = name[:MAX_THREAD_TITLE_LENGTH]
        await self.queue.enqueue(lambda: thread.edit(name=new_name), name=f"rename_thread:{thread.id}")
        await self.mark_thread_as_manually_renamed(str(thread.guild.id), str(thread.id))
        return new_name
