"""
Persistent per-guild configuration storage backed by one JSON file per guild.

Responsibilities:
- Load ``<config_dir>/<guild_id>.json`` on first access and cache the result
- Construct (and cache, but not persist) defaults for guilds never configured
- Write whole records atomically (temp file + replace) and refresh the cache
  only once the write succeeded
- Serialize read-modify-write updates per guild behind an ``asyncio.Lock``
"""

from __future__ import annotations

import asyncio
import collections
import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Callable, DefaultDict, Dict

from introcord.configuration.guild_config import GuildConfig
from introcord.util.logger import get_logger

logger = get_logger("guild_config_store")


class ConfigStoreError(Exception):
    """Raised when a guild configuration cannot be read from or written to disk."""


def copy_config(config: GuildConfig) -> GuildConfig:
    """Return a copy of ``config`` that shares no mutable sets with it."""
    return dataclasses.replace(
        config,
        enabled_channels=set(config.enabled_channels),
        manually_renamed_threads=set(config.manually_renamed_threads),
    )


class GuildConfigStore:
    """
    File-backed store for :class:`GuildConfig` records with an in-memory cache.

    All callers run on the bot's single event loop, so the cache needs no
    locking. Mutations go through :meth:`update` or :meth:`modify`, which hold
    a per-guild lock across the read and the write so two near-simultaneous
    commands cannot lose each other's changes.
    """

    def __init__(self, config_dir: Path) -> None:
        self.config_dir = Path(config_dir)
        self._cache: Dict[str, GuildConfig] = {}
        self._locks: DefaultDict[str, asyncio.Lock] = collections.defaultdict(asyncio.Lock)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        logger.info("[GUILD CONFIG STORE] Using config directory %s", self.config_dir)

    def config_path(self, guild_id: str) -> Path:
        return self.config_dir / f"{guild_id}.json"

    # -------- Reads --------
    async def get(self, guild_id: str) -> GuildConfig:
        """Return the cached config, loading it from disk or defaulting it on first access."""
        guild_id = str(guild_id)
        cached = self._cache.get(guild_id)
        if cached is not None:
            return cached

        data = await asyncio.to_thread(self._read_file, self.config_path(guild_id))
        if data is None:
            config = GuildConfig(guild_id=guild_id)
            logger.debug("[GUILD CONFIG STORE] No stored config for guild %s, using defaults", guild_id)
        else:
            config = GuildConfig.from_dict(guild_id, data)
            logger.debug("[GUILD CONFIG STORE] Loaded config for guild %s", guild_id)

        # Another coroutine may have populated the cache while we were reading
        return self._cache.setdefault(guild_id, config)

    def get_cached(self, guild_id: str) -> GuildConfig | None:
        return self._cache.get(str(guild_id))

    def clear_cache(self) -> None:
        self._cache.clear()

    # -------- Writes --------
    async def set(self, guild_id: str, config: GuildConfig) -> None:
        """Persist ``config`` as the full record for the guild and cache it."""
        guild_id = str(guild_id)
        async with self._locks[guild_id]:
            await self._write(guild_id, config)

    async def update(self, guild_id: str, **changes: Any) -> GuildConfig:
        """Apply field-level changes to a guild's config and persist the result.

        Example: ``await store.update(guild_id, archive_duration=ArchiveDuration.ONE_HOUR)``
        """
        invalid = [name for name in changes if name not in GuildConfig.__dataclass_fields__ or name == "guild_id"]
        if invalid:
            raise ValueError(f"Unknown guild config fields: {', '.join(sorted(invalid))}")

        def apply(config: GuildConfig) -> None:
            for name, value in changes.items():
                setattr(config, name, value)

        return await self.modify(guild_id, apply)

    async def modify(self, guild_id: str, mutator: Callable[[GuildConfig], Any]) -> GuildConfig:
        """Run ``mutator`` on a copy of the current config under the guild lock, then persist it.

        The cached record only changes if the write succeeds.
        """
        guild_id = str(guild_id)
        async with self._locks[guild_id]:
            updated = copy_config(await self.get(guild_id))
            mutator(updated)
            await self._write(guild_id, updated)
            return self._cache[guild_id]

    async def shutdown(self) -> None:
        """Wait for in-flight writes by acquiring every guild lock once."""
        for guild_id, lock in list(self._locks.items()):
            async with lock:
                pass
        logger.info("[GUILD CONFIG STORE] Guild config store shutdown complete")

    # -------- Persistence helpers --------
    async def _write(self, guild_id: str, config: GuildConfig) -> None:
        snapshot = copy_config(config)
        snapshot.guild_id = guild_id
        payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)
        await asyncio.to_thread(self._write_file, self.config_path(guild_id), payload)
        self._cache[guild_id] = snapshot
        logger.debug("[GUILD CONFIG STORE] Persisted config for guild %s", guild_id)

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any] | None:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.error("[GUILD CONFIG STORE] Failed to read %s: %s", path, exc)
            raise ConfigStoreError(f"Could not read guild config {path.name}") from exc

        if not isinstance(data, dict):
            raise ConfigStoreError(f"Guild config {path.name} is not a JSON object")
        return data

    @staticmethod
    def _write_file(path: Path, payload: str) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.error("[GUILD CONFIG STORE] Failed to write %s: %s", path, exc)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            raise ConfigStoreError(f"Could not write guild config {path.name}") from exc
