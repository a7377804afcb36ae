"""
Embed builders for onboarding DMs, public form posts and auto-thread status.
"""

import datetime
import random
from typing import Optional

import discord

from introcord.configuration.app_configuration import AppConfig
from introcord.configuration.guild_config import ArchiveDuration, GuildConfig
from introcord.util.discord_utils import build_channel_url

INTRO_COLOR = discord.Color(0x2B6CB0)
PROJECT_COLOR = discord.Color(0x2F855A)
REMINDER_COLOR = discord.Color(0xFBBF24)
STATUS_COLOR = discord.Color(0x5865F2)
PING_COLOR = discord.Color(0x00FF00)

INTRO_VARIATIONS: tuple[tuple[str, str, str], ...] = (
    ("Welcome to the family, {name}!", "About {name}:", "Ready to build something amazing? Let's go!"),
    ("Hey there, {name}!", "Get to know {name}:", "Welcome to our community of builders and creators!"),
    ("A warm welcome to {name}!", "Meet {name}:", "Excited to see what you'll build with us!"),
    ("Welcome aboard, {name}!", "About {name}:", "Great to have another builder in our community!"),
    ("Welcome to {community}, {name}!", "Here's what {name} shared:", "We're thrilled to have you join our journey!"),
)

PROJECT_VARIATIONS: tuple[tuple[str, str, str], ...] = (
    ("New project: {product}", "About this project:", "Join the discussion here!"),
    ("Building: {product}", "Project details:", "Share your thoughts in the thread!"),
    ("Work in progress: {product}", "What it's about:", "Let's discuss this together!"),
    ("Project spotlight: {product}", "Project overview:", "Join the conversation!"),
    ("Fresh build: {product}", "Here are the details:", "Share your feedback here!"),
)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _quote(text: str) -> str:
    """Render multi-line user text as a Markdown block quote."""
    return "\n".join(f"> {line}" for line in text.splitlines()) or "> "


def build_welcome_embed(user_id: int, guild_id: int, settings: AppConfig) -> discord.Embed:
    """DM sent when the intro flow starts. Channel links use full URLs so they work in DMs."""
    links = []
    if settings.intro_channel_id:
        links.append(f"[#introductions]({build_channel_url(guild_id, settings.intro_channel_id)})")
    if settings.working_channel_id:
        links.append(f"[#working-on]({build_channel_url(guild_id, settings.working_channel_id)})")
    if settings.get_help_channel_id:
        links.append(f"[#get-help]({build_channel_url(guild_id, settings.get_help_channel_id)})")

    lines = [
        f"Hey <@{user_id}>",
        "",
        f"Welcome to **{settings.community_name}**, home for builders shipping great products.",
        "",
        "__Kick things off (≈60s):__",
        "> - Fill Introduction: who you are.",
        "> - Fill What You're Working On: share your current project; we'll open a public thread so others can follow and help.",
        "> - Or share a Showcase of something you already shipped.",
        "",
        f"__Perk:__ Complete your introduction and one project form to earn the {settings.builder_role_name} role.",
        "",
        "__Notes__",
        "> - Your answers will be posted publicly, so please avoid any sensitive info.",
    ]
    if links:
        lines.append(f"> - Jump in anytime via {', '.join(links)}.")
    lines += ["", "Let's build great things together!"]

    return discord.Embed(
        title=f"Welcome to {settings.community_name}!",
        description="\n".join(lines),
        color=INTRO_COLOR,
    )


def build_intro_embed(name: str, user_id: int, about: str, community_name: str) -> discord.Embed:
    """Public introduction post, phrased with one of several random greetings."""
    title, section, footer = random.choice(INTRO_VARIATIONS)
    description = "\n".join([
        f"{title.format(name=name, community=community_name)} <@{user_id}>",
        "",
        f"__{section.format(name=name)}__",
        _quote(about),
    ])
    embed = discord.Embed(title="New Introduction", description=description, color=INTRO_COLOR)
    embed.set_footer(text=footer)
    return embed


def build_project_embed(product: str, user_id: int, about: str, *, showcase: bool = False) -> discord.Embed:
    """Public post for the working-on and showcase forms."""
    title, section, footer = random.choice(PROJECT_VARIATIONS)
    description = "\n".join([
        f"{title.format(product=product)} <@{user_id}>",
        "",
        f"__{section}__",
        _quote(about),
    ])
    embed = discord.Embed(
        title="New Showcase" if showcase else "New Project",
        description=description,
        color=PROJECT_COLOR,
    )
    embed.set_footer(text=footer)
    return embed


def build_reminder_embed(user_id: int, settings: AppConfig) -> discord.Embed:
    return discord.Embed(
        title="🔔 Friendly Reminder",
        description=(
            f"Hey <@{user_id}>! 👋\n\n"
            "We noticed you haven't completed your introduction yet.\n\n"
            "Take just **60 seconds** to:\n"
            "✅ Fill your introduction\n"
            "✅ Share what you're working on\n\n"
            f"Earn the **{settings.builder_role_name}** role and join the community! 🚀"
        ),
        color=REMINDER_COLOR,
        timestamp=_now(),
    )


def build_status_embed(guild_name: str, config: GuildConfig) -> discord.Embed:
    """Summary of a guild's auto-thread settings for ``/auto-thread status``."""
    channels = ", ".join(f"<#{channel_id}>" for channel_id in sorted(config.enabled_channels))
    embed = discord.Embed(
        title="Auto-Thread Configuration",
        description=f"Configuration for {guild_name}",
        color=STATUS_COLOR,
        timestamp=_now(),
    )
    embed.add_field(name="Enabled Channels", value=channels or "None", inline=False)
    embed.add_field(name="Archive Duration", value=ArchiveDuration(config.archive_duration).label, inline=True)
    embed.add_field(name="Include Bots", value="Yes" if config.include_bots else "No", inline=True)
    embed.add_field(
        name="Title Template",
        value=f"`{config.title_template}`" if config.title_template else "_Default: `${first50}`_",
        inline=False,
    )
    embed.add_field(name="Reply Message", value=config.reply_message or "_Not set_", inline=False)
    return embed


def build_channel_list_embed(guild: discord.Guild, config: GuildConfig) -> discord.Embed:
    """List of auto-thread channels for ``/auto-thread list``."""
    lines = []
    for channel_id in sorted(config.enabled_channels):
        channel = guild.get_channel(int(channel_id))
        if channel is not None:
            lines.append(f"• <#{channel_id}> ({channel.name})")
        else:
            lines.append(f"• <#{channel_id}> _(channel not found)_")

    embed = discord.Embed(
        title="Auto-Thread Enabled Channels",
        description="\n".join(lines),
        color=STATUS_COLOR,
        timestamp=_now(),
    )
    embed.set_footer(text=f"Total: {len(config.enabled_channels)} channels")
    return embed


def build_ping_embed(
    *,
    guild_name: Optional[str],
    user: discord.abc.User,
    latency_lines: list[str],
    system_lines: list[str],
    stats_lines: list[str],
    request_id: int,
) -> discord.Embed:
    """Diagnostics embed for ``/ping``."""
    unix_now = int(_now().timestamp())
    embed = discord.Embed(
        title="Pong! System Status",
        description=f"Server: {guild_name or 'Direct Message'}\nCommand executed by: <@{user.id}>",
        color=PING_COLOR,
        timestamp=_now(),
    )
    embed.set_thumbnail(url=user.display_avatar.url)
    embed.add_field(name="Latency Metrics", value="\n".join(latency_lines), inline=False)
    embed.add_field(name="System Information", value="\n".join(system_lines), inline=False)
    embed.add_field(name="Bot Statistics", value="\n".join(stats_lines), inline=False)
    embed.add_field(
        name="Timestamps",
        value="\n".join([
            f"Unix Timestamp: <t:{unix_now}>",
            f"ISO 8601: {datetime.datetime.fromtimestamp(unix_now, datetime.timezone.utc).isoformat()}",
            f"Local Time: <t:{unix_now}:f>",
        ]),
        inline=False,
    )
    embed.set_footer(text=f"Introcord • Request ID: {request_id}")
    return embed
