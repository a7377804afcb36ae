"""
Introcord Discord Bot
=====================

A community bot that walks new members through introduction and project
forms, grants a builder role on completion, and auto-threads messages in
configured channels.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. INTROCORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("INTROCORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from introcord.configuration.app_configuration import app_config
from introcord.services import BotServices
from introcord.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for member joins, message content (thread titles) and DMs."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    intents.dm_messages = True
    return intents


def load_cogs(bot: discord.Bot, services: BotServices) -> None:
    """Register all cogs with the bot, handing each the shared services."""
    from introcord.bot.cogs import auto_thread_cmds, debug_cmds, events_listener, intro_cmds, message_listener

    events_listener.setup(bot, services)
    message_listener.setup(bot, services)
    auto_thread_cmds.setup(bot, services)
    intro_cmds.setup(bot, services)
    debug_cmds.setup(bot, services)

    logger.info("All cogs loaded successfully.")


def create_bot() -> tuple[discord.Bot, BotServices]:
    """Instantiate the Discord bot and its services, and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    services = BotServices.from_config(app_config, bot)
    load_cogs(bot, services)
    return bot, services


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection lifecycle."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, services: BotServices | None) -> None:
    """Stop background services, then close the Discord connection."""
    if services is not None:
        try:
            await services.shutdown()
        except Exception as exc:
            logger.exception("Error during services shutdown: %s", exc)

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the bot and run it until disconnect, returning an exit code."""
    token = load_environment()

    try:
        bot, services = create_bot()
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, services)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting Introcord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 0 if code is None else 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    print(f"Exited with code: {main()}")
