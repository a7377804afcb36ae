"""
Onboarding buttons and modal forms.

The DM buttons encode ``open_modal|<form>|<user_id>|<guild_id>`` in their
custom IDs so a click can be served even after a restart (the reminder DM
arrives a day later). Modals are shown fresh for every click and submit back
into :class:`IntroFlowService`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import discord

from introcord.onboarding.completion_tracker import FormType
from introcord.util.logger import get_logger

if TYPE_CHECKING:
    from introcord.onboarding.intro_flow import IntroFlowService

logger = get_logger("intro_ui")

OPEN_FORM_ACTION = "open_modal"

FORM_BUTTON_LABELS: dict[FormType, str] = {
    FormType.INTRO: "Fill Introduction",
    FormType.WORKING: "Fill What I'm Working On",
    FormType.SHOWCASE: "Share a Showcase",
}

MAX_NAME_LENGTH = 100
MAX_ABOUT_LENGTH = 2000


@dataclass(frozen=True)
class FormButtonTarget:
    """Decoded form button: which form, for whom, in which guild."""

    form_type: FormType
    user_id: int
    guild_id: int


def build_form_custom_id(form_type: FormType, user_id: int, guild_id: int) -> str:
    return f"{OPEN_FORM_ACTION}|{FormType(form_type).value}|{user_id}|{guild_id}"


def parse_form_custom_id(custom_id: str) -> Optional[FormButtonTarget]:
    """Decode a form button custom ID, or return None if it is not one of ours."""
    parts = custom_id.split("|")
    if len(parts) < 4 or parts[0] != OPEN_FORM_ACTION:
        return None
    try:
        form_type = FormType(parts[1])
    except ValueError:
        return None
    if not (parts[2].isdigit() and parts[3].isdigit()):
        return None
    return FormButtonTarget(form_type=form_type, user_id=int(parts[2]), guild_id=int(parts[3]))


class OnboardingButtonsView(discord.ui.View):
    """The form buttons attached to the welcome and reminder DMs."""

    def __init__(self, user_id: int, guild_id: int, *, include_showcase: bool = True):
        super().__init__(timeout=None)
        forms = [FormType.INTRO, FormType.WORKING]
        if include_showcase:
            forms.append(FormType.SHOWCASE)
        for form_type in forms:
            self.add_item(
                discord.ui.Button(
                    label=FORM_BUTTON_LABELS[form_type],
                    style=discord.ButtonStyle.primary,
                    custom_id=build_form_custom_id(form_type, user_id, guild_id),
                )
            )


class IntroFormModal(discord.ui.Modal):
    def __init__(self, flow: "IntroFlowService", target: FormButtonTarget):
        super().__init__(title="Introduce yourself")
        self.flow = flow
        self.target = target
        self.add_item(
            discord.ui.InputText(
                label="Name",
                placeholder="How should we call you?",
                style=discord.InputTextStyle.short,
                max_length=MAX_NAME_LENGTH,
                required=True,
            )
        )
        self.add_item(
            discord.ui.InputText(
                label="About me",
                placeholder="Tell us about yourself, your background, interests...",
                style=discord.InputTextStyle.long,
                max_length=MAX_ABOUT_LENGTH,
                required=True,
            )
        )

    async def callback(self, interaction: discord.Interaction):
        await self.flow.submit_form(
            interaction,
            self.target,
            title=self.children[0].value or "",
            about=self.children[1].value or "",
        )


class ProjectFormModal(discord.ui.Modal):
    """Shared by the working-on and showcase forms; only the wording differs."""

    def __init__(self, flow: "IntroFlowService", target: FormButtonTarget):
        showcase = target.form_type == FormType.SHOWCASE
        super().__init__(title="Share a showcase" if showcase else "What you're working on")
        self.flow = flow
        self.target = target
        self.add_item(
            discord.ui.InputText(
                label="Product's name",
                placeholder="The product name",
                style=discord.InputTextStyle.short,
                max_length=MAX_NAME_LENGTH,
                required=True,
            )
        )
        self.add_item(
            discord.ui.InputText(
                label="What did you ship" if showcase else "What is it about",
                placeholder="Describe the product in a few lines...",
                style=discord.InputTextStyle.long,
                max_length=MAX_ABOUT_LENGTH,
                required=True,
            )
        )

    async def callback(self, interaction: discord.Interaction):
        await self.flow.submit_form(
            interaction,
            self.target,
            title=self.children[0].value or "",
            about=self.children[1].value or "",
        )


def build_form_modal(flow: "IntroFlowService", target: FormButtonTarget) -> discord.ui.Modal:
    if target.form_type == FormType.INTRO:
        return IntroFormModal(flow, target)
    return ProjectFormModal(flow, target)


async def handle_open_form(
    interaction: discord.Interaction,
    target: FormButtonTarget,
    flow: "IntroFlowService",
) -> None:
    """Show the requested form, but only to the user it was sent to."""
    if interaction.user.id != target.user_id:
        await interaction.response.send_message("Only the invited user can fill this form.", ephemeral=True)
        return

    logger.debug("[INTRO UI] Opening %s form for user %s", target.form_type.value, target.user_id)
    await interaction.response.send_modal(build_form_modal(flow, target))
