"""Queue consumers and publishing.

Handlers are registered when ``domain_watchdog.jobs.handlers`` is imported;
the Celery tasks in ``domain_watchdog.jobs.tasks`` do so at worker start.
"""

from .bus import CeleryMessageBus, InMemoryMessageBus, MessageBus, task_name
from .executor import execute_message
from .registry import get_handler, list_message_names, register_handler

__all__ = [
    "CeleryMessageBus",
    "InMemoryMessageBus",
    "MessageBus",
    "execute_message",
    "get_handler",
    "list_message_names",
    "register_handler",
    "task_name",
]
