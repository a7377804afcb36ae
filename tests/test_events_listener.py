from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from introcord.bot.cogs import events_listener
from introcord.bot.cogs.events_listener import INTERACTION_ERROR_MESSAGE, EventsListenerCog
from introcord.onboarding.completion_tracker import FormType
from introcord.ui.intro_ui import FormButtonTarget


def make_services():
    return SimpleNamespace(
        start=MagicMock(),
        intro_flow=SimpleNamespace(start_intro_flow=AsyncMock(return_value=True)),
        threads=SimpleNamespace(),
    )


def make_interaction(custom_id, done=False):
    return SimpleNamespace(
        type=discord.InteractionType.component,
        custom_id=custom_id,
        response=SimpleNamespace(is_done=lambda: done, send_message=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


def test_setup_adds_cog():
    captured = {}
    events_listener.setup(SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog)), make_services())
    assert isinstance(captured["cog"], EventsListenerCog)


@pytest.mark.asyncio
async def test_on_ready_starts_services():
    services = make_services()
    bot = SimpleNamespace(user=SimpleNamespace(id=1, name="introcord"), guilds=[1, 2])
    cog = EventsListenerCog(bot, services)

    await cog.on_ready()

    services.start.assert_called_once()


@pytest.mark.asyncio
async def test_member_join_starts_intro_flow():
    services = make_services()
    cog = EventsListenerCog(SimpleNamespace(), services)
    member = SimpleNamespace(id=10, bot=False, guild=SimpleNamespace(id=1))

    await cog.on_member_join(member)

    services.intro_flow.start_intro_flow.assert_awaited_once_with(1, member)


@pytest.mark.asyncio
async def test_bots_joining_are_ignored():
    services = make_services()
    cog = EventsListenerCog(SimpleNamespace(), services)

    await cog.on_member_join(SimpleNamespace(id=11, bot=True, guild=SimpleNamespace(id=1)))

    services.intro_flow.start_intro_flow.assert_not_awaited()


@pytest.mark.asyncio
async def test_form_button_is_routed(monkeypatch):
    services = make_services()
    handler = AsyncMock()
    monkeypatch.setattr(events_listener, "handle_open_form", handler)
    cog = EventsListenerCog(SimpleNamespace(), services)
    interaction = make_interaction("open_modal|working|10|1")

    await cog.on_interaction(interaction)

    handler.assert_awaited_once_with(
        interaction,
        FormButtonTarget(form_type=FormType.WORKING, user_id=10, guild_id=1),
        services.intro_flow,
    )


@pytest.mark.asyncio
async def test_thread_control_is_routed(monkeypatch):
    services = make_services()
    handler = AsyncMock()
    monkeypatch.setattr(events_listener, "handle_thread_control", handler)
    cog = EventsListenerCog(SimpleNamespace(), services)
    interaction = make_interaction("thread_rename|700")

    await cog.on_interaction(interaction)

    handler.assert_awaited_once_with(interaction, "thread_rename", 700, services.threads)


@pytest.mark.asyncio
async def test_foreign_custom_ids_are_ignored(monkeypatch):
    form_handler = AsyncMock()
    thread_handler = AsyncMock()
    monkeypatch.setattr(events_listener, "handle_open_form", form_handler)
    monkeypatch.setattr(events_listener, "handle_thread_control", thread_handler)
    cog = EventsListenerCog(SimpleNamespace(), make_services())

    await cog.on_interaction(make_interaction("some_other_bot|1"))

    form_handler.assert_not_awaited()
    thread_handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_handler_errors_are_reported(monkeypatch):
    monkeypatch.setattr(events_listener, "handle_thread_control", AsyncMock(side_effect=RuntimeError("boom")))
    cog = EventsListenerCog(SimpleNamespace(), make_services())

    fresh = make_interaction("thread_close|700")
    await cog.on_interaction(fresh)
    fresh.response.send_message.assert_awaited_once_with(INTERACTION_ERROR_MESSAGE, ephemeral=True)

    answered = make_interaction("thread_close|700", done=True)
    await cog.on_interaction(answered)
    answered.followup.send.assert_awaited_once_with(INTERACTION_ERROR_MESSAGE, ephemeral=True)


@pytest.mark.asyncio
async def test_application_command_error_responds():
    cog = EventsListenerCog(SimpleNamespace(), make_services())
    ctx = SimpleNamespace(command=SimpleNamespace(name="ping"), respond=AsyncMock())

    await cog.on_application_command_error(ctx, RuntimeError("bad"))

    ctx.respond.assert_awaited_once_with("A :bug: showed up while running this command.", ephemeral=True)
