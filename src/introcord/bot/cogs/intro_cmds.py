"""
Onboarding commands.

- /ping-intro: (moderators) DM up to three members the intro form buttons
- /clear-dm: delete this bot's messages from the caller's DMs
"""

import discord
from discord import Option
from discord.ext import commands

from introcord.services import BotServices
from introcord.util.discord_utils import clear_bot_dms, is_moderator
from introcord.util.logger import get_logger

logger = get_logger("intro_cog")


class IntroCog(commands.Cog):
    """Commands that drive the intro flow and DM housekeeping."""

    def __init__(self, bot: discord.Bot, services: BotServices):
        self.bot = bot
        self.services = services
        logger.info("Intro cog loaded")

    @commands.slash_command(name="ping-intro", description="Ping users to introduce themselves (mods only).")
    async def ping_intro(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.Member, "User to ping", required=True),  # type: ignore
        user_2: Option(discord.Member, "Another user to ping", required=False, default=None),  # type: ignore
        user_3: Option(discord.Member, "Another user to ping", required=False, default=None),  # type: ignore
    ):
        """Start the intro DM flow for one to three members."""
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return

        if not is_moderator(ctx.user, self.services.settings.mod_role_id):
            await ctx.respond("You need the moderator role to use this command.", ephemeral=True)
            return

        targets = []
        for member in (user, user_2, user_3):
            if member is not None and all(member.id != t.id for t in targets):
                targets.append(member)

        await ctx.defer(ephemeral=True)

        lines = []
        for member in targets:
            if member.bot:
                lines.append(f"• Skipped <@{member.id}>: bots can't fill in forms.")
                continue
            started = await self.services.intro_flow.start_intro_flow(ctx.guild_id, member)
            if started:
                lines.append(f"• Started intro flow for <@{member.id}> (sent them a DM).")
            else:
                lines.append(f"• Could not DM <@{member.id}>. They may have DMs disabled.")

        logger.info(f"/ping-intro by {ctx.user} for {[m.id for m in targets]} in guild {ctx.guild_id}")
        await ctx.send_followup("\n".join(lines), ephemeral=True)

    @commands.slash_command(name="clear-dm", description="Clear all DM messages from this bot for the current user.")
    async def clear_dm(self, ctx: discord.ApplicationContext):
        """Delete the bot's own messages from the caller's DM channel."""
        await ctx.defer(ephemeral=True)
        try:
            _, message = await clear_bot_dms(self.bot.user.id, ctx.user)
        except Exception as exc:
            logger.error(f"Error clearing DMs for {ctx.user.id}: {exc}")
            message = "An unexpected error occurred while trying to clear your DMs. Please try again later."
        await ctx.send_followup(message, ephemeral=True)


def setup(bot: discord.Bot, services: BotServices) -> None:
    """Register the IntroCog with the bot."""
    bot.add_cog(IntroCog(bot, services))
