"""Handler registry mapping message names to consumer functions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import Message


logger = get_logger("jobs.registry")

Handler = Callable[[Message], Awaitable[str]]

# Global handler registry
_registry: dict[str, Handler] = {}


def register_handler(message_name: str) -> Callable[[Handler], Handler]:
    """
    Decorator to register the consumer of a message.

    Usage:
        @register_handler("update_rdap_servers")
        async def update_rdap_servers(message):
            ...

    Each message name has exactly one consumer; registering a second one
    raises ``ValueError``.
    """

    def decorator(func: Handler) -> Handler:
        existing = _registry.get(message_name)
        if existing is not None and existing is not func:
            raise ValueError(f"Handler already registered for {message_name}")
        _registry[message_name] = func
        logger.debug(f"Registered handler: {message_name}")
        return func

    return decorator


def get_handler(message_name: str) -> Handler | None:
    """Get a registered handler by message name."""
    return _registry.get(message_name)


def list_message_names() -> list[str]:
    return list(_registry.keys())
