"""
Auto-thread cog: per-guild configuration of automatic threads.

Commands:
- /auto-thread enable|disable <channel>
- /auto-thread set replymessage|titletemplate [template]
- /auto-thread set archiveduration <duration>
- /auto-thread status | list
- /auto-thread test <channel>

All commands require the Manage Server permission and respond ephemerally.
"""

from typing import Optional

import discord
from discord import Option
from discord.ext import commands

from introcord.configuration.guild_config import ARCHIVE_DURATION_LABELS, ArchiveDuration
from introcord.configuration.guild_config_store import ConfigStoreError
from introcord.services import BotServices
from introcord.threads.templates import Placeholder, find_unknown_placeholders
from introcord.ui.embeds import build_channel_list_embed, build_status_embed
from introcord.util.discord_utils import has_manage_guild
from introcord.util.logger import get_logger

logger = get_logger("auto_thread_cog")

ARCHIVE_DURATION_CHOICES = [
    discord.OptionChoice(name=label, value=int(duration))
    for duration, label in ARCHIVE_DURATION_LABELS.items()
]

SAVE_FAILED_MESSAGE = "❌ Could not save the auto-thread configuration. Please try again."


def describe_placeholders() -> str:
    return ", ".join(f"`{p.token}`" for p in Placeholder)


def is_text_channel(channel) -> bool:
    return getattr(channel, "type", None) == discord.ChannelType.text


class AutoThreadCog(commands.Cog):
    """Slash commands that configure auto-threading for a guild."""

    auto_thread = discord.SlashCommandGroup(
        "auto-thread",
        "Configure auto-threading behavior",
        default_member_permissions=discord.Permissions(manage_guild=True),
    )
    settings_group = auto_thread.create_subgroup("set", "Configure auto-thread settings")

    def __init__(self, bot: discord.Bot, services: BotServices):
        self.bot = bot
        self.services = services
        logger.info("Auto-thread cog loaded")

    async def _ensure_manager(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        if not has_manage_guild(ctx.user):
            await ctx.respond("You need the Manage Server permission to configure auto-threading.", ephemeral=True)
            return False
        await ctx.defer(ephemeral=True)
        return True

    async def _validate_template(self, ctx: discord.ApplicationContext, template: Optional[str]) -> bool:
        if not template:
            return True
        unknown = find_unknown_placeholders(template)
        if not unknown:
            return True
        await ctx.send_followup(
            "❌ Unknown placeholder(s): "
            + ", ".join(f"`${{{name}}}`" for name in unknown)
            + f"\nSupported placeholders: {describe_placeholders()}",
            ephemeral=True,
        )
        return False

    # ==========================================
    # Channels
    # ==========================================

    @auto_thread.command(name="enable", description="Enable auto-threading for a channel")
    async def enable(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(discord.abc.GuildChannel, "Channel to enable auto-threading in", required=True),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return

        if not is_text_channel(channel):
            await ctx.send_followup("❌ Auto-threading only works in text channels.", ephemeral=True)
            return

        channel_id = str(channel.id)
        config = await self.services.store.get(str(ctx.guild_id))
        if channel_id in config.enabled_channels:
            await ctx.send_followup(f"ℹ️ Auto-threading is already enabled in <#{channel_id}>.", ephemeral=True)
            return

        try:
            await self.services.store.modify(str(ctx.guild_id), lambda c: c.enabled_channels.add(channel_id))
        except ConfigStoreError as exc:
            logger.error(f"Failed to enable auto-threading in {channel_id}: {exc}")
            await ctx.send_followup(SAVE_FAILED_MESSAGE, ephemeral=True)
            return

        logger.info(f"Auto-threading enabled in channel {channel_id} (guild {ctx.guild_id}) by {ctx.user}")
        await ctx.send_followup(f"✅ Auto-threading enabled in <#{channel_id}>.", ephemeral=True)

    @auto_thread.command(name="disable", description="Disable auto-threading for a channel")
    async def disable(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(discord.abc.GuildChannel, "Channel to disable auto-threading in", required=True),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return

        channel_id = str(channel.id)
        config = await self.services.store.get(str(ctx.guild_id))
        if channel_id not in config.enabled_channels:
            await ctx.send_followup(f"ℹ️ Auto-threading is not enabled in <#{channel_id}>.", ephemeral=True)
            return

        try:
            await self.services.store.modify(str(ctx.guild_id), lambda c: c.enabled_channels.discard(channel_id))
        except ConfigStoreError as exc:
            logger.error(f"Failed to disable auto-threading in {channel_id}: {exc}")
            await ctx.send_followup(SAVE_FAILED_MESSAGE, ephemeral=True)
            return

        logger.info(f"Auto-threading disabled in channel {channel_id} (guild {ctx.guild_id}) by {ctx.user}")
        await ctx.send_followup(f"✅ Auto-threading disabled in <#{channel_id}>.", ephemeral=True)

    # ==========================================
    # Settings
    # ==========================================

    @settings_group.command(name="replymessage", description="Set reply message template")
    async def set_reply_message(
        self,
        ctx: discord.ApplicationContext,
        template: Option(str, "Template with placeholders like ${author}; leave empty to clear", required=False, default=None),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return
        if not await self._validate_template(ctx, template):
            return

        try:
            await self.services.store.update(str(ctx.guild_id), reply_message=template or None)
        except ConfigStoreError as exc:
            logger.error(f"Failed to save reply message for guild {ctx.guild_id}: {exc}")
            await ctx.send_followup(SAVE_FAILED_MESSAGE, ephemeral=True)
            return

        if template:
            await ctx.send_followup(f"✅ Reply message template set to:\n```\n{template}\n```", ephemeral=True)
        else:
            await ctx.send_followup("✅ Reply message template cleared.", ephemeral=True)

    @settings_group.command(name="titletemplate", description="Set thread title template")
    async def set_title_template(
        self,
        ctx: discord.ApplicationContext,
        template: Option(str, "Template like ${author.username} • ${first50}; leave empty to clear", required=False, default=None),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return
        if not await self._validate_template(ctx, template):
            return

        try:
            await self.services.store.update(str(ctx.guild_id), title_template=template or None)
        except ConfigStoreError as exc:
            logger.error(f"Failed to save title template for guild {ctx.guild_id}: {exc}")
            await ctx.send_followup(SAVE_FAILED_MESSAGE, ephemeral=True)
            return

        if template:
            await ctx.send_followup(f"✅ Title template set to:\n```\n{template}\n```", ephemeral=True)
        else:
            await ctx.send_followup("✅ Title template cleared.", ephemeral=True)

    @settings_group.command(name="archiveduration", description="Set auto-archive duration")
    async def set_archive_duration(
        self,
        ctx: discord.ApplicationContext,
        duration: Option(int, "Archive duration in minutes", choices=ARCHIVE_DURATION_CHOICES, required=True),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return

        try:
            archive_duration = ArchiveDuration(int(duration))
        except ValueError:
            await ctx.send_followup("❌ Invalid duration. Must be 60, 1440, 4320, or 10080 minutes.", ephemeral=True)
            return

        try:
            await self.services.store.update(str(ctx.guild_id), archive_duration=archive_duration)
        except ConfigStoreError as exc:
            logger.error(f"Failed to save archive duration for guild {ctx.guild_id}: {exc}")
            await ctx.send_followup(SAVE_FAILED_MESSAGE, ephemeral=True)
            return

        await ctx.send_followup(f"✅ Archive duration set to {archive_duration.label}.", ephemeral=True)

    # ==========================================
    # Inspection
    # ==========================================

    @auto_thread.command(name="status", description="Show current auto-thread configuration")
    async def status(self, ctx: discord.ApplicationContext):
        if not await self._ensure_manager(ctx):
            return

        config = await self.services.store.get(str(ctx.guild_id))
        await ctx.send_followup(embed=build_status_embed(ctx.guild.name, config), ephemeral=True)

    @auto_thread.command(name="list", description="List all enabled channels")
    async def list_channels(self, ctx: discord.ApplicationContext):
        if not await self._ensure_manager(ctx):
            return

        config = await self.services.store.get(str(ctx.guild_id))
        if not config.enabled_channels:
            await ctx.send_followup("ℹ️ No channels have auto-threading enabled.", ephemeral=True)
            return

        await ctx.send_followup(embed=build_channel_list_embed(ctx.guild, config), ephemeral=True)

    @auto_thread.command(name="test", description="Create a test thread to verify permissions and config")
    async def test(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(discord.abc.GuildChannel, "Channel to test in (must be enabled)", required=True),  # type: ignore
    ):
        if not await self._ensure_manager(ctx):
            return

        if not is_text_channel(channel):
            await ctx.send_followup("Can only test in text channels.", ephemeral=True)
            return

        config = await self.services.store.get(str(ctx.guild_id))
        if str(channel.id) not in config.enabled_channels:
            await ctx.send_followup(
                f"Auto-threading is not enabled in <#{channel.id}>.\nEnable it first with `/auto-thread enable`.",
                ephemeral=True,
            )
            return

        permissions = channel.permissions_for(ctx.guild.me)
        if not permissions.create_public_threads:
            await ctx.send_followup(
                f"Missing permission: **Create Public Threads** in <#{channel.id}>.\n"
                "Please grant this permission to the bot.",
                ephemeral=True,
            )
            return

        try:
            test_message = await channel.send(
                "🧪 **Auto-Thread Test**\n\nThis is a test message to verify auto-threading configuration."
            )
            thread = await self.services.threads.create_thread_for_message(test_message, force=True)
        except discord.HTTPException as exc:
            logger.warning(f"Auto-thread test failed in channel {channel.id}: {exc}")
            thread = None

        if thread is None:
            await ctx.send_followup(
                "Test failed. Could not create thread.\nCheck bot permissions and configuration.",
                ephemeral=True,
            )
            return

        await ctx.send_followup(
            f"Test successful!\n\nCreated thread: <#{thread.id}>\nOriginal message: {test_message.jump_url}",
            ephemeral=True,
        )


def setup(bot: discord.Bot, services: BotServices) -> None:
    """Register the AutoThreadCog with the bot."""
    bot.add_cog(AutoThreadCog(bot, services))
