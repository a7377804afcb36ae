"""
discord_utils.py
================

Low-level Discord helpers for Introcord.

Stateless functions for error classification, permission checks, DM delivery
and cleanup, and small formatting helpers shared by the cogs and services.
"""

from __future__ import annotations

import asyncio
import datetime
from typing import Any, Union

import discord

from introcord.util.logger import get_logger

logger = get_logger("discord_utils")

MAX_THREAD_TITLE_LENGTH = 100
MAX_DM_MESSAGES_FETCH = 100
DM_DELETE_DELAY_SECONDS = 0.1

THREAD_CHANNEL_TYPES = (
    discord.ChannelType.public_thread,
    discord.ChannelType.private_thread,
    discord.ChannelType.news_thread,
)


# ==========================================
# Error classification
# ==========================================

def is_rate_limited(exc: BaseException) -> bool:
    """Return True when ``exc`` is Discord telling us to back off (HTTP 429)."""
    return getattr(exc, "status", None) == 429 or getattr(exc, "code", None) == 429


def get_retry_after(exc: BaseException) -> float | None:
    """Return the server-suggested retry delay in seconds, if the error carries one."""
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is None:
        return None
    try:
        value = float(retry_after)
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None


# ==========================================
# Channel and permission helpers
# ==========================================

def is_thread_channel(channel: Any) -> bool:
    """Return True if ``channel`` is any kind of thread."""
    if isinstance(channel, discord.Thread):
        return True
    return getattr(channel, "type", None) in THREAD_CHANNEL_TYPES


def has_manage_guild(member: Union[discord.User, discord.Member, None]) -> bool:
    """Check whether ``member`` holds the Manage Server permission."""
    permissions = getattr(member, "guild_permissions", None)
    return bool(getattr(permissions, "manage_guild", False))


def has_role(member: Union[discord.User, discord.Member, None], role_id: str | None) -> bool:
    """Return True if ``member`` carries the role with ID ``role_id``."""
    if member is None or not role_id:
        return False
    return any(str(role.id) == str(role_id) for role in getattr(member, "roles", []) or [])


def is_moderator(member: Union[discord.User, discord.Member, None], mod_role_id: str | None) -> bool:
    """A moderator holds the configured mod role or the Manage Server permission."""
    return has_role(member, mod_role_id) or has_manage_guild(member)


def can_manage_thread(member: Union[discord.User, discord.Member, None], thread: discord.Thread) -> bool:
    """Thread controls are open to Manage Threads holders and the thread owner."""
    if member is None:
        return False
    if getattr(thread, "owner_id", None) == member.id:
        return True
    try:
        permissions = thread.permissions_for(member)
    except Exception:  # pragma: no cover - discord internals guard
        return False
    return bool(getattr(permissions, "manage_threads", False))


def build_channel_url(guild_id: Union[int, str], channel_id: Union[int, str, None]) -> str:
    """Build a jump URL for a channel that also works inside DMs."""
    return f"https://discord.com/channels/{guild_id}/{channel_id}"


# ==========================================
# DM helpers
# ==========================================

async def send_dm(user: Union[discord.User, discord.Member], **kwargs: Any) -> bool:
    """
    Send a direct message, treating closed DMs as a soft failure.

    Returns:
        bool: True if the message was delivered.
    """
    try:
        await user.send(**kwargs)
        return True
    except discord.Forbidden:
        logger.warning("Could not DM user %s: DMs are closed", getattr(user, "id", user))
    except discord.HTTPException as exc:
        logger.warning("Could not DM user %s: %s", getattr(user, "id", user), exc)
    return False


async def clear_bot_dms(bot_user_id: int, user: Union[discord.User, discord.Member]) -> tuple[bool, str]:
    """
    Delete this bot's messages from its DM channel with ``user``.

    Messages are deleted one at a time with a short pause, since DM channels
    have no bulk delete. Individual failures are logged and skipped.

    Returns:
        tuple[bool, str]: Whether the cleanup ran, and a message for the user.
    """
    try:
        dm_channel = user.dm_channel or await user.create_dm()
    except discord.HTTPException as exc:
        logger.warning("Could not open DM channel with %s: %s", user.id, exc)
        return False, "Cannot access your DMs. Please make sure your DMs are open to server members."

    try:
        messages = [message async for message in dm_channel.history(limit=MAX_DM_MESSAGES_FETCH)]
    except discord.HTTPException as exc:
        logger.warning("Could not fetch DM history with %s: %s", user.id, exc)
        return False, "Failed to fetch messages from your DMs."

    bot_messages = [message for message in messages if message.author.id == bot_user_id]
    if not bot_messages:
        return True, "No messages from this bot were found in your DMs."

    deleted = 0
    for message in bot_messages:
        try:
            await message.delete()
            deleted += 1
        except discord.NotFound:
            logger.debug("DM message %s was already deleted", message.id)
        except discord.HTTPException as exc:
            logger.warning("Failed to delete DM message %s: %s", message.id, exc)
        await asyncio.sleep(DM_DELETE_DELAY_SECONDS)

    logger.info("Cleared %d bot DM messages for user %s", deleted, user.id)
    return True, f"Successfully cleared {deleted} messages from this bot in your DMs."


# ==========================================
# Formatting
# ==========================================

def format_uptime(seconds: float) -> str:
    """Render an uptime such as ``2d 3h 4m 5s``, omitting empty leading units."""
    total = int(max(seconds, 0))
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)


def latency_status(latency_ms: float) -> str:
    """Bucket a latency in milliseconds into a traffic-light label."""
    if latency_ms < 0:
        return "N/A"
    if latency_ms < 100:
        return "🟢 Excellent"
    if latency_ms < 200:
        return "🟡 Good"
    if latency_ms < 300:
        return "🟠 Fair"
    return "🔴 Poor"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)
