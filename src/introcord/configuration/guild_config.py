"""
Per-guild auto-threading configuration record.

A :class:`GuildConfig` mirrors the JSON file persisted for each guild. Sets
are stored as sorted arrays of strings so files diff cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict


class ArchiveDuration(IntEnum):
    """Thread auto-archive durations accepted by Discord, in minutes."""

    ONE_HOUR = 60
    ONE_DAY = 1440
    THREE_DAYS = 4320
    ONE_WEEK = 10080

    @property
    def label(self) -> str:
        return ARCHIVE_DURATION_LABELS[self]


ARCHIVE_DURATION_LABELS: dict[ArchiveDuration, str] = {
    ArchiveDuration.ONE_HOUR: "1 hour",
    ArchiveDuration.ONE_DAY: "24 hours",
    ArchiveDuration.THREE_DAYS: "3 days",
    ArchiveDuration.ONE_WEEK: "7 days",
}

DEFAULT_ARCHIVE_DURATION = ArchiveDuration.ONE_DAY


@dataclass(slots=True)
class GuildConfig:
    """Persistent per-guild auto-threading settings."""

    guild_id: str
    enabled_channels: set[str] = field(default_factory=set)
    include_bots: bool = False
    title_template: str | None = None
    reply_message: str | None = None
    archive_duration: ArchiveDuration = DEFAULT_ARCHIVE_DURATION
    manually_renamed_threads: set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON layout used on disk."""
        return {
            "guildId": self.guild_id,
            "enabledChannels": sorted(self.enabled_channels),
            "includeBots": self.include_bots,
            "titleTemplate": self.title_template,
            "replyMessage": self.reply_message,
            "archiveDuration": int(self.archive_duration),
            "manuallyRenamedThreads": sorted(self.manually_renamed_threads),
        }

    @classmethod
    def from_dict(cls, guild_id: str, data: Dict[str, Any]) -> "GuildConfig":
        """Build a config from a decoded JSON object.

        Unknown keys are ignored and an unsupported archive duration falls back
        to the default, so hand-edited files do not take the guild offline.
        """
        try:
            archive_duration = ArchiveDuration(int(data.get("archiveDuration", DEFAULT_ARCHIVE_DURATION)))
        except (TypeError, ValueError):
            archive_duration = DEFAULT_ARCHIVE_DURATION

        return cls(
            guild_id=guild_id,
            enabled_channels={str(c) for c in data.get("enabledChannels") or []},
            include_bots=bool(data.get("includeBots", False)),
            title_template=data.get("titleTemplate") or None,
            reply_message=data.get("replyMessage") or None,
            archive_duration=archive_duration,
            manually_renamed_threads={str(t) for t in data.get("manuallyRenamedThreads") or []},
        )
