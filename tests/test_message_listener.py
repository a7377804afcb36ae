from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from introcord.bot.cogs import message_listener
from introcord.bot.cogs.message_listener import STARTER_DELETED_NOTICE, MessageListenerCog


def make_services():
    return SimpleNamespace(
        threads=SimpleNamespace(
            create_thread_for_message=AsyncMock(return_value=None),
            update_thread_title=AsyncMock(return_value=None),
        )
    )


def make_message(thread=None, channel_type=discord.ChannelType.text, guild=True):
    return SimpleNamespace(
        id=555,
        channel=SimpleNamespace(id=100, name="general", type=channel_type),
        guild=SimpleNamespace(id=1, get_thread=MagicMock(return_value=thread)) if guild else None,
    )


def test_setup_adds_cog():
    captured = {}
    message_listener.setup(SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog)), make_services())
    assert isinstance(captured["cog"], MessageListenerCog)


@pytest.mark.asyncio
async def test_guild_messages_are_offered_for_threading():
    services = make_services()
    cog = MessageListenerCog(SimpleNamespace(), services)
    message = make_message()

    await cog.on_message(message)

    services.threads.create_thread_for_message.assert_awaited_once_with(message)


@pytest.mark.asyncio
async def test_dm_and_thread_messages_are_ignored():
    services = make_services()
    cog = MessageListenerCog(SimpleNamespace(), services)

    await cog.on_message(make_message(guild=False))
    await cog.on_message(make_message(channel_type=discord.ChannelType.public_thread))

    services.threads.create_thread_for_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_thread_creation_errors_are_contained():
    services = make_services()
    services.threads.create_thread_for_message.side_effect = RuntimeError("boom")
    cog = MessageListenerCog(SimpleNamespace(), services)

    await cog.on_message(make_message())


@pytest.mark.asyncio
async def test_edit_updates_thread_title():
    services = make_services()
    cog = MessageListenerCog(SimpleNamespace(), services)
    thread = SimpleNamespace(id=555, name="old")
    after = make_message(thread=thread)

    await cog.on_message_edit(make_message(thread=thread), after)

    services.threads.update_thread_title.assert_awaited_once_with(after, thread)


@pytest.mark.asyncio
async def test_edit_without_thread_does_nothing():
    services = make_services()
    cog = MessageListenerCog(SimpleNamespace(), services)

    await cog.on_message_edit(make_message(), make_message())

    services.threads.update_thread_title.assert_not_awaited()


@pytest.mark.asyncio
async def test_deleted_starter_leaves_notice():
    cog = MessageListenerCog(SimpleNamespace(), make_services())
    thread = SimpleNamespace(id=555, name="topic", send=AsyncMock())

    await cog.on_message_delete(make_message(thread=thread))

    thread.send.assert_awaited_once_with(STARTER_DELETED_NOTICE)
