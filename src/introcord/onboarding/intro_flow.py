"""
Member onboarding flow.

Responsibilities:
- DM new members the welcome embed with the form buttons and schedule a reminder
- Post submitted forms publicly (introductions as an embed; working-on and
  showcase posts as an embed plus a discussion thread the author is added to)
- Track completions and grant the builder role once a member has the intro
  form plus one project form, cancelling their pending reminder
"""

from __future__ import annotations

from typing import Optional, Union

import discord

from introcord.configuration.app_configuration import AppConfig
from introcord.onboarding.completion_tracker import CompletionTracker, FormType
from introcord.onboarding.reminder_scheduler import Reminder, ReminderScheduler
from introcord.threads.thread_service import ThreadService
from introcord.ui.embeds import build_intro_embed, build_project_embed, build_reminder_embed, build_welcome_embed
from introcord.ui.intro_ui import FormButtonTarget, OnboardingButtonsView
from introcord.util.discord_utils import has_role, send_dm
from introcord.util.logger import get_logger

logger = get_logger("intro_flow")

FORM_POSTED_TEXT: dict[FormType, str] = {
    FormType.INTRO: "Thanks! Your introduction has been posted publicly in the server!",
    FormType.WORKING: "Thanks! Your working-on message has been posted in a public thread!",
    FormType.SHOWCASE: "Thanks! Your showcase has been posted in a public thread!",
}


class IntroFlowService:
    """
    Drive the intro / working-on / showcase forms for one bot.

    Args:
        bot: The connected bot, used to resolve users, guilds and channels.
        settings: Application config holding channel and role IDs.
        thread_service: Starts discussion threads through the shared task queue.
        completions: Per-user completion state.
        reminders: Pending reminder DMs.
    """

    def __init__(
        self,
        bot: discord.Bot,
        settings: AppConfig,
        thread_service: ThreadService,
        completions: CompletionTracker,
        reminders: ReminderScheduler,
    ) -> None:
        self.bot = bot
        self.settings = settings
        self.thread_service = thread_service
        self.completions = completions
        self.reminders = reminders

    # ==========================================
    # Flow start and reminders
    # ==========================================

    async def start_intro_flow(self, guild_id: int, user: Union[discord.User, discord.Member]) -> bool:
        """
        DM ``user`` the welcome embed with the form buttons.

        Returns:
            bool: True if the DM was delivered (a reminder is scheduled only then).
        """
        delivered = await send_dm(
            user,
            embed=build_welcome_embed(user.id, guild_id, self.settings),
            view=OnboardingButtonsView(user.id, guild_id),
        )
        if not delivered:
            logger.warning("[INTRO FLOW] Could not start intro flow for user %s", user.id)
            return False

        self.reminders.schedule_reminder(str(guild_id), str(user.id))
        logger.info("[INTRO FLOW] Started intro flow for user %s in guild %s", user.id, guild_id)
        return True

    async def deliver_reminder(self, reminder: Reminder) -> None:
        """Send the reminder DM with the form buttons again."""
        user_id = int(reminder.user_id)
        user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
        delivered = await send_dm(
            user,
            embed=build_reminder_embed(user_id, self.settings),
            view=OnboardingButtonsView(user_id, int(reminder.guild_id)),
        )
        if not delivered:
            raise RuntimeError("reminder DM was not delivered")

    # ==========================================
    # Form submission
    # ==========================================

    def progress_text(self, form_type: FormType, fully_complete: bool) -> str:
        role = self.settings.builder_role_name
        if fully_complete:
            suffix = f"✅ You have completed the onboarding forms and will receive the {role} role shortly!"
        elif form_type == FormType.INTRO:
            suffix = f"One more form to go to get your {role} role!"
        else:
            suffix = f"Fill your introduction too to get your {role} role!"
        return f"{FORM_POSTED_TEXT[form_type]} {suffix}"

    def channel_id_for(self, form_type: FormType) -> Optional[str]:
        if form_type == FormType.INTRO:
            return self.settings.intro_channel_id
        if form_type == FormType.SHOWCASE:
            return self.settings.showcase_channel_id
        return self.settings.working_channel_id

    async def _resolve_channel(self, channel_id: Optional[str]) -> Optional[discord.abc.Messageable]:
        if not channel_id:
            return None
        channel = self.bot.get_channel(int(channel_id))
        if channel is not None:
            return channel
        try:
            return await self.bot.fetch_channel(int(channel_id))
        except (discord.NotFound, discord.Forbidden) as exc:
            logger.warning("[INTRO FLOW] Destination channel %s unavailable: %s", channel_id, exc)
            return None

    async def post_form(self, target: FormButtonTarget, title: str, about: str) -> Optional[discord.Message]:
        """
        Publish a submitted form to its channel.

        Returns:
            The posted message, or None if the destination channel is missing.
        """
        channel = await self._resolve_channel(self.channel_id_for(target.form_type))
        if channel is None:
            return None

        if target.form_type == FormType.INTRO:
            embed = build_intro_embed(title, target.user_id, about, self.settings.community_name)
            return await channel.send(embed=embed)

        embed = build_project_embed(
            title, target.user_id, about, showcase=target.form_type == FormType.SHOWCASE,
        )
        post = await channel.send(embed=embed)
        thread = await self.thread_service.start_public_thread(post, title)

        try:
            await thread.add_user(discord.Object(id=target.user_id))
        except discord.HTTPException as exc:
            logger.warning("[INTRO FLOW] Could not add user %s to thread %s: %s", target.user_id, thread.id, exc)
        return post

    async def submit_form(
        self,
        interaction: discord.Interaction,
        target: FormButtonTarget,
        *,
        title: str,
        about: str,
    ) -> None:
        """Handle a modal submission from the invited user."""
        if interaction.user.id != target.user_id:
            await interaction.response.send_message(
                "You're not allowed to submit this. This prompt was for someone else.", ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)

        try:
            post = await self.post_form(target, title.strip(), about.strip())
        except discord.HTTPException as exc:
            logger.error("[INTRO FLOW] Failed to post %s form for user %s: %s", target.form_type.value, target.user_id, exc)
            await interaction.followup.send("Something went wrong posting your answers. Contact a mod.", ephemeral=True)
            return

        if post is None:
            await interaction.followup.send(
                "Could not find destination channel to post your message. Contact a mod.", ephemeral=True,
            )
            return

        self.completions.record_completion(str(target.user_id), target.form_type)
        fully_complete = self.completions.is_fully_complete(str(target.user_id))
        await interaction.followup.send(self.progress_text(target.form_type, fully_complete), ephemeral=True)

        if fully_complete:
            self.reminders.cancel_reminder(str(target.guild_id), str(target.user_id))
            guild = self.bot.get_guild(target.guild_id)
            if guild is None:
                logger.warning("[INTRO FLOW] Guild %s not cached, cannot grant role", target.guild_id)
                return
            await self.award_builder_role(guild, target.user_id)

    # ==========================================
    # Role grant
    # ==========================================

    async def award_builder_role(self, guild: discord.Guild, user_id: int) -> bool:
        """
        Give the builder role to a member who does not have it yet and congratulate them.

        Returns:
            bool: True if the role was added by this call.
        """
        role_id = self.settings.builder_role_id
        if not role_id:
            logger.warning("[INTRO FLOW] No builder role configured, skipping role grant")
            return False

        try:
            member = guild.get_member(int(user_id)) or await guild.fetch_member(int(user_id))
        except discord.NotFound:
            logger.warning("[INTRO FLOW] User %s is no longer in guild %s", user_id, guild.id)
            return False

        if has_role(member, role_id):
            logger.info("[INTRO FLOW] User %s already has the builder role", user_id)
            return False

        role = guild.get_role(int(role_id))
        if role is None:
            logger.error("[INTRO FLOW] Builder role %s not found in guild %s", role_id, guild.id)
            return False

        try:
            await member.add_roles(role, reason="Completed introduction and project forms")
        except discord.Forbidden:
            logger.error("[INTRO FLOW] Missing permission to grant role %s in guild %s", role_id, guild.id)
            return False

        await send_dm(
            member,
            content=(
                f"🎉 **Congratulations!** You've been awarded the **{self.settings.builder_role_name}** role "
                "for completing your introduction and sharing what you're working on! Keep building! 🚀"
            ),
        )
        logger.info("[INTRO FLOW] Awarded builder role to user %s in guild %s", user_id, guild.id)
        return True
