"""Outbound message publishing.

``CeleryMessageBus`` sends a message as the task ``messages.<MESSAGE_NAME>``
with the message fields as keyword arguments, routed per ``JOB_PRIORITIES``.
Follow-up domain triggers go to their own queue, consumed outside this
service.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import Message
from domain_watchdog.jobs.job_defaults import get_job_priority


logger = get_logger("jobs.bus")


def task_name(message: Message | type[Message]) -> str:
    return f"messages.{message.MESSAGE_NAME}"


@runtime_checkable
class MessageBus(Protocol):
    async def publish(self, message: Message) -> None: ...


class CeleryMessageBus:
    def __init__(self, app=None):
        if app is None:
            from domain_watchdog.celery_app import celery_app as app
        self.app = app

    async def publish(self, message: Message) -> None:
        route = get_job_priority(message.MESSAGE_NAME)
        result = self.app.send_task(
            task_name(message),
            kwargs=message.model_dump(mode="json"),
            queue=route["queue"],
            priority=route["priority"],
        )
        logger.debug(
            f"Published {message.MESSAGE_NAME}",
            extra={"task_id": result.id, "queue": route["queue"]},
        )


class InMemoryMessageBus:
    """Collects published messages; for tests and local runs."""

    def __init__(self) -> None:
        self.messages: list[Message] = []

    async def publish(self, message: Message) -> None:
        self.messages.append(message)

    def of_type(self, message_type: type[Message]) -> list[Message]:
        return [m for m in self.messages if isinstance(m, message_type)]
