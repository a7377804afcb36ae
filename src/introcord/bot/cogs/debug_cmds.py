"""
Diagnostics cog: /ping with latency, uptime, memory and cache statistics.
"""

import datetime
import math
import platform
import resource
import time

import discord
from discord import Option
from discord.ext import commands

from introcord.services import BotServices
from introcord.ui.embeds import build_ping_embed
from introcord.util.discord_utils import format_uptime, is_moderator, latency_status
from introcord.util.logger import get_logger

logger = get_logger("debug_commands")


def peak_rss_mb() -> float:
    """Peak resident set size of this process in MB (ru_maxrss is KB on Linux)."""
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024


class DebugCog(commands.Cog):
    """Cog for diagnostic commands."""

    def __init__(self, bot: discord.Bot, services: BotServices):
        self.bot = bot
        self.services = services

    @commands.slash_command(name="ping", description="Check bot latency and performance metrics.")
    async def ping(
        self,
        ctx: discord.ApplicationContext,
        ephemeral: Option(bool, "Make the response only visible to you", required=False, default=False),  # type: ignore
    ) -> None:
        if not is_moderator(ctx.user, self.services.settings.mod_role_id):
            await ctx.respond("You need the moderator role to use this command.", ephemeral=True)
            return

        started = time.perf_counter()
        try:
            await ctx.defer(ephemeral=bool(ephemeral))

            created_at = discord.utils.snowflake_time(ctx.interaction.id)
            message_latency = int((datetime.datetime.now(datetime.timezone.utc) - created_at).total_seconds() * 1000)
            api_latency = int(self.bot.latency * 1000) if math.isfinite(self.bot.latency) else -1
            api_display = f"{api_latency}ms {latency_status(api_latency)}" if api_latency >= 0 else "N/A"
            total_ms = int((time.perf_counter() - started) * 1000)

            embed = build_ping_embed(
                guild_name=ctx.guild.name if ctx.guild else None,
                user=ctx.user,
                latency_lines=[
                    f"API Latency: {api_display}",
                    f"Message Latency: {message_latency}ms {latency_status(message_latency)}",
                    f"Total Response Time: {total_ms}ms",
                ],
                system_lines=[
                    f"Uptime: {format_uptime(self.services.uptime_seconds)}",
                    f"Peak RSS Memory: {peak_rss_mb():.1f}MB",
                    f"Python Version: {platform.python_version()}",
                    f"Platform: {platform.system()} {platform.machine()}",
                ],
                stats_lines=[
                    f"Cached Users: {len(self.bot.users)}",
                    f"Cached Guilds: {len(self.bot.guilds)}",
                    f"Queued Thread Tasks: {len(self.services.queue)}",
                    f"Pending Reminders: {len(self.services.reminders.pending_reminders())}",
                    f"Tracked Completions: {len(self.services.completions)}",
                ],
                request_id=ctx.interaction.id,
            )
            await ctx.send_followup(embed=embed, ephemeral=bool(ephemeral))
            logger.debug(f"Ping command executed by {ctx.user}")
        except Exception as e:
            logger.error(f"Error in ping command: {e}")
            await ctx.send_followup(content="❌ Could not collect diagnostics.", ephemeral=True)


def setup(bot: discord.Bot, services: BotServices) -> None:
    """Register the DebugCog with the bot."""
    bot.add_cog(DebugCog(bot, services))
