"""
Member onboarding for Introcord.

- **intro_flow.py**: Welcome DM, form submission handling and role grant.
- **completion_tracker.py**: Which forms each member has submitted, with
  time-based expiry.
- **reminder_scheduler.py**: One-shot reminder DMs for members who have not
  finished onboarding.
"""
