"""
Configuration management for Introcord.

- **app_configuration.py**: YAML configuration loader for global settings
  (channel and role IDs, community naming, timer intervals, task queue
  backoff). Falls back gracefully on missing or malformed config files.

- **guild_config.py**: The per-guild auto-threading record and its JSON
  layout.

- **guild_config_store.py**: One JSON file per guild with an in-memory cache.
  Writes are atomic and serialized per guild.
"""
