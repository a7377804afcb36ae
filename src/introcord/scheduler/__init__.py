"""
Background task execution for Introcord.

- **periodic_task.py**: Fixed-interval loop with start/shutdown lifecycle,
  used by the reminder sweep and completion eviction.
"""
