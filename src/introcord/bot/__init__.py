"""
Discord integration for Introcord.

- **cogs/events_listener.py**: on_ready, member joins, command errors and
  component routing for form buttons and thread controls
- **cogs/message_listener.py**: auto-threads new messages, refreshes titles
  on edit, leaves a note when a starter message is deleted
- **cogs/auto_thread_cmds.py**: /auto-thread configuration commands
- **cogs/intro_cmds.py**: /ping-intro and /clear-dm
- **cogs/debug_cmds.py**: /ping diagnostics
"""
