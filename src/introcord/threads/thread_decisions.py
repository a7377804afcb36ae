"""
Pure auto-threading policy.

These functions never touch the Discord API or the task queue, so they can be
exercised with plain stand-in objects.
"""

from __future__ import annotations

from typing import Any

from introcord.configuration.guild_config import GuildConfig
from introcord.threads.templates import content_prefix, render_template
from introcord.util.discord_utils import MAX_THREAD_TITLE_LENGTH, is_thread_channel


def is_system_message(message: Any) -> bool:
    is_system = getattr(message, "is_system", None)
    return bool(is_system()) if callable(is_system) else False


def should_create_thread(message: Any, config: GuildConfig) -> bool:
    """Decide whether ``message`` qualifies for an automatic thread under ``config``."""
    if is_thread_channel(message.channel):
        return False

    if str(message.channel.id) not in config.enabled_channels:
        return False

    if message.author.bot and not config.include_bots:
        return False

    if is_system_message(message):
        return False

    return True


def generate_title(message: Any, template: str | None = None) -> str:
    """
    Build a thread title for ``message``.

    Without a template the title is the first 50 characters of the content
    (or "New thread" when empty). The result is always cut to Discord's
    100 character limit last.

    Raises:
        UnknownPlaceholderError: If ``template`` uses an unrecognised placeholder.
    """
    if not template:
        title = content_prefix(message.content, 50)
    else:
        title = render_template(template, message)
    return title[:MAX_THREAD_TITLE_LENGTH]
