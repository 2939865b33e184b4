"""Valkey client shared by the lock and the directory snapshot store.

Celery workers drive every task through one persistent event loop, and
redis.asyncio connections are bound to the loop that opened them, so one
client is kept per loop.
"""

from __future__ import annotations

import asyncio

from redis.asyncio import Redis

from domain_watchdog.core.config import settings
from domain_watchdog.core.logging import get_logger


logger = get_logger("cache.client")

_clients: dict[int, Redis] = {}


def _loop_id() -> int:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return 0


async def get_valkey_client() -> Redis:
    loop_id = _loop_id()
    client = _clients.get(loop_id)
    if client is None:
        client = _clients[loop_id] = Redis.from_url(
            settings.valkey_url,
            max_connections=settings.valkey_max_connections,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
            health_check_interval=30,
        )
        logger.info("Valkey client created", extra={"loop_id": loop_id})
    return client


async def close_valkey_client() -> None:
    """Close the current loop's client and its connection pool."""
    client = _clients.pop(_loop_id(), None)
    if client is not None:
        await client.aclose()
        logger.info("Valkey client closed")
