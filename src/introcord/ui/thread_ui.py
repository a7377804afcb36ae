"""
Close / Rename controls attached to auto-thread reply messages.

Buttons carry ``thread_close|<thread_id>`` and ``thread_rename|<thread_id>``
custom IDs so clicks can be routed after a restart, when the original view
object no longer exists. :func:`handle_thread_control` is the entry point the
interaction listener calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import discord

from introcord.configuration.guild_config_store import ConfigStoreError
from introcord.util.discord_utils import MAX_THREAD_TITLE_LENGTH, can_manage_thread, is_thread_channel
from introcord.util.logger import get_logger

if TYPE_CHECKING:
    from introcord.threads.thread_service import ThreadService

logger = get_logger("thread_ui")

THREAD_CLOSE_ACTION = "thread_close"
THREAD_RENAME_ACTION = "thread_rename"
THREAD_CONTROL_ACTIONS = (THREAD_CLOSE_ACTION, THREAD_RENAME_ACTION)


def build_thread_custom_id(action: str, thread_id: int) -> str:
    return f"{action}|{thread_id}"


def parse_thread_custom_id(custom_id: str) -> Optional[tuple[str, int]]:
    """Split a thread control custom ID into ``(action, thread_id)``, or None if it is not one."""
    action, _, raw_id = custom_id.partition("|")
    if action not in THREAD_CONTROL_ACTIONS or not raw_id.isdigit():
        return None
    return action, int(raw_id)


class ThreadControlsView(discord.ui.View):
    """Close and Rename buttons for one thread."""

    def __init__(self, thread_id: int):
        super().__init__(timeout=None)
        self.thread_id = thread_id
        self.add_item(
            discord.ui.Button(
                label="Close Thread",
                emoji="🔒",
                style=discord.ButtonStyle.danger,
                custom_id=build_thread_custom_id(THREAD_CLOSE_ACTION, thread_id),
            )
        )
        self.add_item(
            discord.ui.Button(
                label="Rename Thread",
                emoji="✏️",
                style=discord.ButtonStyle.secondary,
                custom_id=build_thread_custom_id(THREAD_RENAME_ACTION, thread_id),
            )
        )


class RenameThreadModal(discord.ui.Modal):
    """Ask for a new thread name and apply it as a manual rename."""

    def __init__(self, thread: discord.Thread, thread_service: "ThreadService"):
        super().__init__(title="Rename Thread")
        self.thread = thread
        self.thread_service = thread_service
        self.add_item(
            discord.ui.InputText(
                label="New thread name",
                style=discord.InputTextStyle.short,
                max_length=MAX_THREAD_TITLE_LENGTH,
                value=thread.name,
                required=True,
            )
        )

    async def callback(self, interaction: discord.Interaction):
        new_name = (self.children[0].value or "").strip()[:MAX_THREAD_TITLE_LENGTH]
        if not new_name:
            await interaction.response.send_message("Thread name cannot be empty.", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        try:
            await self.thread_service.rename_thread(self.thread, new_name)
        except discord.HTTPException as exc:
            logger.warning("[THREAD UI] Failed to rename thread %s: %s", self.thread.id, exc)
            await interaction.followup.send("❌ Failed to rename the thread. Please try again.", ephemeral=True)
            return
        except ConfigStoreError as exc:
            logger.error("[THREAD UI] Renamed thread %s but could not save the manual rename: %s", self.thread.id, exc)
            await interaction.followup.send(
                f'⚠️ Thread renamed to "{new_name}", but the manual rename could not be saved. '
                "Editing the first message may change the title again.",
                ephemeral=True,
            )
            return

        await interaction.followup.send(f'✅ Thread renamed to "{new_name}"', ephemeral=True)


async def _resolve_thread(guild: discord.Guild, thread_id: int) -> Optional[discord.Thread]:
    thread = guild.get_thread(thread_id)
    if thread is not None:
        return thread
    try:
        channel = await guild.fetch_channel(thread_id)
    except (discord.NotFound, discord.Forbidden):
        return None
    return channel if is_thread_channel(channel) else None


async def handle_thread_control(
    interaction: discord.Interaction,
    action: str,
    thread_id: int,
    thread_service: "ThreadService",
) -> None:
    """Run a Close or Rename click after checking the clicker may manage the thread."""
    if interaction.guild is None:
        await interaction.response.send_message("This command only works in servers.", ephemeral=True)
        return

    thread = await _resolve_thread(interaction.guild, thread_id)
    if thread is None:
        await interaction.response.send_message("Thread not found.", ephemeral=True)
        return

    verb = "close" if action == THREAD_CLOSE_ACTION else "rename"
    if not can_manage_thread(interaction.user, thread):
        await interaction.response.send_message(
            f"You need Manage Threads permission or be the thread owner to {verb} this thread.",
            ephemeral=True,
        )
        return

    if action == THREAD_RENAME_ACTION:
        await interaction.response.send_modal(RenameThreadModal(thread, thread_service))
        return

    await thread.edit(archived=True, reason=f"Closed via button by {interaction.user}")
    logger.info("[THREAD UI] Thread %s closed by %s", thread.id, interaction.user.id)
    await interaction.response.send_message("✅ Thread has been closed.", ephemeral=True)
