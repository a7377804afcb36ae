"""Message listener Cog for Introcord.

Creates auto-threads for new messages, refreshes thread titles when the
starter message is edited, and leaves a note in the thread when the starter
message is deleted.
"""

import discord
from discord.ext import commands

from introcord.services import BotServices
from introcord.util.discord_utils import is_thread_channel
from introcord.util.logger import get_logger

logger = get_logger("message_listener_cog")

STARTER_DELETED_NOTICE = (
    "📌 *Note: The original message for this thread was deleted, but the discussion continues here.*"
)


def thread_for_message(message: discord.Message):
    """The thread started from ``message``, if cached (a starter's thread shares its ID)."""
    if message.guild is None:
        return None
    return message.guild.get_thread(message.id)


class MessageListenerCog(commands.Cog):
    """Cog responsible for message create, edit and delete events."""

    def __init__(self, bot: discord.Bot, services: BotServices):
        self.bot = bot
        self.services = services
        logger.info("Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        if message.guild is None or is_thread_channel(message.channel):
            return

        try:
            thread = await self.services.threads.create_thread_for_message(message)
        except Exception as exc:
            logger.error(f"Failed to create thread for message {message.id}: {exc}", exc_info=True)
            return

        if thread is not None:
            logger.debug(
                f"Auto-thread \"{thread.name}\" ({thread.id}) for message {message.id} "
                f"in #{getattr(message.channel, 'name', message.channel.id)}"
            )

    @commands.Cog.listener(name="on_message_edit")
    async def on_message_edit(self, before: discord.Message, after: discord.Message):
        thread = thread_for_message(after)
        if thread is None:
            return

        try:
            await self.services.threads.update_thread_title(after, thread)
        except Exception as exc:
            logger.error(f"Failed to update title of thread {thread.id}: {exc}", exc_info=True)

    @commands.Cog.listener(name="on_message_delete")
    async def on_message_delete(self, message: discord.Message):
        thread = thread_for_message(message)
        if thread is None:
            return

        logger.info(f"Starter message {message.id} was deleted, thread \"{thread.name}\" ({thread.id}) is preserved")
        try:
            await thread.send(STARTER_DELETED_NOTICE)
        except discord.HTTPException as exc:
            logger.warning(f"Failed to send deletion notice in thread {thread.id}: {exc}")


def setup(bot: discord.Bot, services: BotServices) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, services))
