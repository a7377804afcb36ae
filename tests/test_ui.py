from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from introcord.configuration.guild_config_store import ConfigStoreError
from introcord.onboarding.completion_tracker import FormType
from introcord.ui.intro_ui import (
    FormButtonTarget,
    IntroFormModal,
    OnboardingButtonsView,
    ProjectFormModal,
    build_form_custom_id,
    handle_open_form,
    parse_form_custom_id,
)
from introcord.ui.thread_ui import (
    THREAD_CLOSE_ACTION,
    THREAD_RENAME_ACTION,
    RenameThreadModal,
    ThreadControlsView,
    build_thread_custom_id,
    handle_thread_control,
    parse_thread_custom_id,
)


def test_form_custom_id_round_trip():
    custom_id = build_form_custom_id(FormType.SHOWCASE, 10, 1)

    assert custom_id == "open_modal|showcase|10|1"
    assert parse_form_custom_id(custom_id) == FormButtonTarget(FormType.SHOWCASE, 10, 1)


@pytest.mark.parametrize(
    "custom_id",
    ["open_modal|unknown|10|1", "open_modal|intro|x|1", "open_modal|intro|10", "thread_close|5", ""],
)
def test_foreign_form_custom_ids_are_rejected(custom_id):
    assert parse_form_custom_id(custom_id) is None


def test_thread_custom_ids():
    assert build_thread_custom_id(THREAD_CLOSE_ACTION, 7) == "thread_close|7"
    assert parse_thread_custom_id("thread_rename|7") == (THREAD_RENAME_ACTION, 7)
    assert parse_thread_custom_id("thread_delete|7") is None
    assert parse_thread_custom_id("thread_close|abc") is None


@pytest.mark.asyncio
async def test_onboarding_view_buttons():
    view = OnboardingButtonsView(10, 1)
    assert [item.custom_id for item in view.children] == [
        "open_modal|intro|10|1",
        "open_modal|working|10|1",
        "open_modal|showcase|10|1",
    ]
    assert view.timeout is None

    without_showcase = OnboardingButtonsView(10, 1, include_showcase=False)
    assert len(without_showcase.children) == 2


@pytest.mark.asyncio
async def test_thread_controls_view_buttons():
    view = ThreadControlsView(700)
    assert [item.custom_id for item in view.children] == ["thread_close|700", "thread_rename|700"]


@pytest.mark.asyncio
async def test_open_form_only_for_invited_user():
    interaction = SimpleNamespace(
        user=SimpleNamespace(id=99),
        response=SimpleNamespace(send_message=AsyncMock(), send_modal=AsyncMock()),
    )

    await handle_open_form(interaction, FormButtonTarget(FormType.INTRO, 10, 1), flow=SimpleNamespace())

    interaction.response.send_message.assert_awaited_once_with(
        "Only the invited user can fill this form.", ephemeral=True
    )
    interaction.response.send_modal.assert_not_awaited()


@pytest.mark.asyncio
async def test_open_form_shows_matching_modal():
    interaction = SimpleNamespace(
        user=SimpleNamespace(id=10),
        response=SimpleNamespace(send_message=AsyncMock(), send_modal=AsyncMock()),
    )

    await handle_open_form(interaction, FormButtonTarget(FormType.INTRO, 10, 1), flow=SimpleNamespace())
    await handle_open_form(interaction, FormButtonTarget(FormType.SHOWCASE, 10, 1), flow=SimpleNamespace())

    intro_modal = interaction.response.send_modal.call_args_list[0].args[0]
    showcase_modal = interaction.response.send_modal.call_args_list[1].args[0]
    assert isinstance(intro_modal, IntroFormModal)
    assert isinstance(showcase_modal, ProjectFormModal)
    assert showcase_modal.title == "Share a showcase"


def make_thread(owner_id=10, manage_threads=False):
    thread = SimpleNamespace(
        id=700,
        name="topic",
        owner_id=owner_id,
        guild=SimpleNamespace(id=1),
        permissions_for=lambda member: SimpleNamespace(manage_threads=manage_threads),
    )
    thread.edit = AsyncMock()
    return thread


def make_interaction(user_id, thread):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id),
        guild=SimpleNamespace(get_thread=MagicMock(return_value=thread), fetch_channel=AsyncMock()),
        response=SimpleNamespace(send_message=AsyncMock(), send_modal=AsyncMock(), defer=AsyncMock()),
        followup=SimpleNamespace(send=AsyncMock()),
    )


@pytest.mark.asyncio
async def test_owner_can_close_thread():
    thread = make_thread()
    interaction = make_interaction(10, thread)

    await handle_thread_control(interaction, THREAD_CLOSE_ACTION, 700, thread_service=SimpleNamespace())

    assert thread.edit.call_args.kwargs["archived"] is True
    interaction.response.send_message.assert_awaited_once_with("✅ Thread has been closed.", ephemeral=True)


@pytest.mark.asyncio
async def test_other_members_cannot_rename():
    thread = make_thread()
    interaction = make_interaction(99, thread)

    await handle_thread_control(interaction, THREAD_RENAME_ACTION, 700, thread_service=SimpleNamespace())

    message = interaction.response.send_message.call_args.args[0]
    assert message == "You need Manage Threads permission or be the thread owner to rename this thread."
    interaction.response.send_modal.assert_not_awaited()


@pytest.mark.asyncio
async def test_moderator_gets_rename_modal():
    thread = make_thread(manage_threads=True)
    interaction = make_interaction(99, thread)

    await handle_thread_control(interaction, THREAD_RENAME_ACTION, 700, thread_service=SimpleNamespace())

    assert isinstance(interaction.response.send_modal.call_args.args[0], RenameThreadModal)


@pytest.mark.asyncio
async def test_missing_thread_is_reported():
    interaction = make_interaction(10, None)
    interaction.guild.fetch_channel.side_effect = discord.NotFound(MagicMock(status=404, reason="Not Found"), "gone")

    await handle_thread_control(interaction, THREAD_CLOSE_ACTION, 700, thread_service=SimpleNamespace())

    interaction.response.send_message.assert_awaited_once_with("Thread not found.", ephemeral=True)


@pytest.mark.asyncio
async def test_rename_modal_applies_manual_rename():
    thread = make_thread()
    service = SimpleNamespace(rename_thread=AsyncMock(return_value="New name"))
    modal = RenameThreadModal(thread, service)
    modal.children[0].value = "  New name  "
    interaction = make_interaction(10, thread)

    await modal.callback(interaction)

    service.rename_thread.assert_awaited_once_with(thread, "New name")
    interaction.followup.send.assert_awaited_once_with('✅ Thread renamed to "New name"', ephemeral=True)


@pytest.mark.asyncio
async def test_rename_modal_rejects_blank_name():
    thread = make_thread()
    service = SimpleNamespace(rename_thread=AsyncMock())
    modal = RenameThreadModal(thread, service)
    modal.children[0].value = "   "
    interaction = make_interaction(10, thread)

    await modal.callback(interaction)

    service.rename_thread.assert_not_awaited()
    interaction.response.send_message.assert_awaited_once_with("Thread name cannot be empty.", ephemeral=True)


@pytest.mark.asyncio
async def test_rename_modal_reports_unsaved_manual_flag():
    thread = make_thread()
    service = SimpleNamespace(rename_thread=AsyncMock(side_effect=ConfigStoreError("disk full")))
    modal = RenameThreadModal(thread, service)
    modal.children[0].value = "New name"
    interaction = make_interaction(10, thread)

    await modal.callback(interaction)

    interaction.followup.send.assert_awaited_once()
    message = interaction.followup.send.call_args.args[0]
    assert message.startswith('⚠️ Thread renamed to "New name"')
    assert "could not be saved" in message
