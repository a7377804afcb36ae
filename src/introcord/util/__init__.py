"""
Utility functions and helpers for Introcord.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit and a rotating per-session log file.

- **discord_utils.py**: Stateless Discord helpers: rate-limit classification,
  permission checks, DM delivery and cleanup, formatting.
"""
