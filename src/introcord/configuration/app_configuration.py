from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from introcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


def _as_snowflake(value: Any) -> str | None:
    """Normalise a configured Discord ID to a string, treating blanks and 0 as unset."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == "0":
        return None
    return text


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml``, exposes
    dictionary-like access helpers, and typed shortcuts for the channel and
    role IDs plus timer settings the bot needs. Reads take a shared fcntl lock.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # Channels and roles
    # --------------------------
    @property
    def intro_channel_id(self) -> str | None:
        return _as_snowflake(self._data.get("intro_channel_id"))

    @property
    def working_channel_id(self) -> str | None:
        return _as_snowflake(self._data.get("working_channel_id"))

    @property
    def showcase_channel_id(self) -> str | None:
        """Channel for showcase posts; falls back to the working-on channel."""
        return _as_snowflake(self._data.get("showcase_channel_id")) or self.working_channel_id

    @property
    def get_help_channel_id(self) -> str | None:
        return _as_snowflake(self._data.get("get_help_channel_id"))

    @property
    def mod_role_id(self) -> str | None:
        return _as_snowflake(self._data.get("mod_role_id"))

    @property
    def builder_role_id(self) -> str | None:
        return _as_snowflake(self._data.get("builder_role_id"))

    @property
    def community_name(self) -> str:
        return str(self._data.get("community_name") or "our community")

    @property
    def builder_role_name(self) -> str:
        return str(self._data.get("builder_role_name") or "Builder")

    # --------------------------
    # Storage and timers
    # --------------------------
    @property
    def guild_config_dir(self) -> Path:
        """Directory holding one ``<guild_id>.json`` file per guild."""
        return Path(str(self._data.get("guild_config_dir") or "./configs")).resolve()

    @property
    def reminder_delay_seconds(self) -> float:
        """Delay between flow start and the reminder DM. Default 24 hours."""
        return float(self._section("reminders").get("delay_hours", 24)) * 3600.0

    @property
    def reminder_check_interval(self) -> float:
        """Seconds between reminder sweeps. Default one hour."""
        return float(self._section("reminders").get("check_interval_seconds", 3600.0))

    @property
    def completion_ttl_seconds(self) -> float:
        """Lifetime of in-progress form completions. Default 24 hours."""
        return float(self._section("completions").get("ttl_hours", 24)) * 3600.0

    @property
    def completion_sweep_interval(self) -> float:
        """Seconds between completion eviction sweeps. Default one hour."""
        return float(self._section("completions").get("sweep_interval_seconds", 3600.0))

    @property
    def task_queue_settings(self) -> Dict[str, float]:
        """Backoff floor, ceiling and inter-task delay for the thread task queue."""
        section = self._section("task_queue")
        return {
            "base_delay": float(section.get("base_delay_seconds", 1.0)),
            "max_delay": float(section.get("max_delay_seconds", 60.0)),
            "inter_task_delay": float(section.get("inter_task_delay_seconds", 0.1)),
        }


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
