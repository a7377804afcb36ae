"""
User interface components for Introcord.

- **embeds.py**: Welcome, reminder, public post, status and diagnostics embeds.
- **intro_ui.py**: Onboarding form buttons and modals.
- **thread_ui.py**: Close / Rename thread controls and the rename modal.
"""
