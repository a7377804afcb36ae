"""Event listener Cog for Introcord.

Handles bot lifecycle (on_ready), new members, command errors and routing of
component clicks (form buttons and thread controls) by custom ID. Message
events are handled by the MessageListenerCog.
"""

import discord
from discord.ext import commands

from introcord.services import BotServices
from introcord.ui.intro_ui import handle_open_form, parse_form_custom_id
from introcord.ui.thread_ui import handle_thread_control, parse_thread_custom_id
from introcord.util.logger import get_logger

logger = get_logger("events_listener_cog")

INTERACTION_ERROR_MESSAGE = "❌ An error occurred while processing your request."


class EventsListenerCog(commands.Cog):
    """Cog containing lifecycle, member and interaction handlers."""

    def __init__(self, bot: discord.Bot, services: BotServices):
        self.bot = bot
        self.services = services
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Start background services once the gateway session is ready."""
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
            logger.info(f"Serving {len(self.bot.guilds)} guilds")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")
        self.services.start()

    @commands.Cog.listener(name="on_member_join")
    async def on_member_join(self, member: discord.Member):
        """Send every new human member the intro flow."""
        if member.bot:
            return
        try:
            logger.info(f"Auto-starting intro flow for new member {member} in {member.guild.id}")
            await self.services.intro_flow.start_intro_flow(member.guild.id, member)
        except Exception as exc:
            logger.error(f"Failed to start intro flow for new member {member.id}: {exc}", exc_info=True)

    @commands.Cog.listener(name="on_interaction")
    async def on_interaction(self, interaction: discord.Interaction):
        """Route component clicks whose custom IDs belong to us."""
        if interaction.type != discord.InteractionType.component:
            return

        custom_id = interaction.custom_id or ""
        try:
            form_target = parse_form_custom_id(custom_id)
            if form_target is not None:
                await handle_open_form(interaction, form_target, self.services.intro_flow)
                return

            thread_control = parse_thread_custom_id(custom_id)
            if thread_control is not None:
                action, thread_id = thread_control
                await handle_thread_control(interaction, action, thread_id, self.services.threads)
        except Exception as exc:
            logger.error(f"Error handling interaction '{custom_id}': {exc}", exc_info=True)
            await self._send_interaction_error(interaction)

    async def _send_interaction_error(self, interaction: discord.Interaction) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(INTERACTION_ERROR_MESSAGE, ephemeral=True)
            else:
                await interaction.response.send_message(INTERACTION_ERROR_MESSAGE, ephemeral=True)
        except discord.HTTPException as exc:
            logger.error(f"Failed to send error response: {exc}")

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Handle errors from application commands with logging and user feedback."""
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, "name", "<unknown>")
        logger.error(f"Error in command '{command_name}': {error}", exc_info=True)

        error_message = "A :bug: showed up while running this command."
        try:
            await application_context.respond(error_message, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(error_message, ephemeral=True)


def setup(bot: discord.Bot, services: BotServices) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, services))
