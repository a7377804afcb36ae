"""
Introcord - Community Onboarding and Auto-Threading Discord Bot

Introcord welcomes new members with a DM holding introduction, working-on and
showcase forms, posts the answers publicly, and grants a builder role once a
member has introduced themselves and shared a project. It also opens
discussion threads automatically in configured channels.

Packages:
- **configuration**: YAML application config and per-guild JSON settings
- **threads**: rate-limited task queue, auto-thread policy and thread service
- **onboarding**: intro flow, completion tracking and reminder DMs
- **scheduler**: fixed-interval background task runner
- **ui**: embeds, buttons and modals
- **bot.cogs**: py-cord cogs exposing slash commands and event listeners
"""
