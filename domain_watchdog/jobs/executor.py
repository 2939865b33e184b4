"""Message execution with error handling."""

from __future__ import annotations

import time

from domain_watchdog.core.exceptions import AppException, JobError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import Message

from .registry import get_handler


logger = get_logger("jobs.executor")


async def execute_message(message: Message) -> str:
    """
    Run the consumer registered for ``message``.

    Args:
        message: Inbound message

    Returns:
        Consumer result message

    Raises:
        JobError: If no consumer is registered or the consumer crashed
        AppException: Domain errors raised by the consumer, unchanged
    """
    name = message.MESSAGE_NAME
    handler = get_handler(name)
    if handler is None:
        raise JobError(message=f"Unknown message: {name}", error_code="UNKNOWN_MESSAGE")

    start_time = time.monotonic()

    try:
        result = await handler(message)
    except AppException:
        duration = time.monotonic() - start_time
        logger.exception(f"Message {name} failed after {duration:.2f}s")
        raise
    except Exception as e:
        duration = time.monotonic() - start_time
        logger.exception(f"Message {name} failed after {duration:.2f}s")
        raise JobError(
            message=f"Message handling failed: {e!s}",
            error_code="MESSAGE_EXECUTION_FAILED",
            details={"message_name": name, "duration_seconds": duration},
        ) from e

    duration = time.monotonic() - start_time
    summary = str(result) if result else "Completed"
    logger.info(f"Message {name} handled in {duration:.2f}s: {summary}")
    return summary
