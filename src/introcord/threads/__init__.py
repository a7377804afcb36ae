"""
Auto-threading for Introcord.

- **task_queue.py**: Single-consumer queue that runs thread creates and
  renames one at a time, retrying rate-limited calls at the head of the queue
  with exponential backoff.

- **templates.py**: Closed set of ``${...}`` placeholders for thread titles
  and reply messages.

- **thread_decisions.py**: Pure policy deciding whether a message gets a
  thread and what it is called.

- **thread_service.py**: Applies the policy against Discord: permission
  checks, thread creation, reply messages and title refresh.
"""
