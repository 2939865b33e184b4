"""Celery tasks consuming queue messages."""

from __future__ import annotations

import asyncio
from typing import Any

from celery import signals

from domain_watchdog.cache.client import close_valkey_client
from domain_watchdog.cache.distributed_lock import DistributedLock
from domain_watchdog.celery_app import celery_app
from domain_watchdog.core.config import settings
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import Message, ProcessWatchListTrigger, UpdateRdapServers
from domain_watchdog.jobs.executor import execute_message
from domain_watchdog.jobs.handlers import configure, load_dependencies  # registers handlers


logger = get_logger("jobs.celery_tasks")

# Per-worker event loop for Celery prefork pool
_worker_loop: asyncio.AbstractEventLoop | None = None


def _get_worker_loop() -> asyncio.AbstractEventLoop:
    """Get or create a persistent event loop for the worker process."""
    global _worker_loop
    if _worker_loop is None or _worker_loop.is_closed():
        _worker_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_worker_loop)
    return _worker_loop


def _run_async(coro: Any) -> Any:
    """Run async coroutine in the worker's event loop.

    Uses a persistent event loop to avoid 'Event loop is closed' errors
    with async Valkey connections.
    """
    loop = _get_worker_loop()
    return loop.run_until_complete(coro)


@signals.worker_process_init.connect
def _configure_worker_dependencies(**_kwargs) -> None:
    configure(load_dependencies(settings.dependencies_factory))


@signals.worker_process_shutdown.connect
def _close_worker_connections(**_kwargs) -> None:
    if _worker_loop is not None and not _worker_loop.is_closed():
        _worker_loop.run_until_complete(close_valkey_client())


async def _execute_locked(lock_name: str, message: Message, timeout: int) -> str:
    lock = DistributedLock(lock_name, timeout=timeout)
    acquired = await lock.acquire()
    if not acquired:
        logger.info(
            f"Skipped {message.MESSAGE_NAME}: {lock_name} already running",
            extra={"lock": lock_name},
        )
        return f"Skipped {message.MESSAGE_NAME}: already running"

    try:
        return await execute_message(message)
    finally:
        await lock.release()


@celery_app.task(name="messages.process_watchlist_trigger")
def process_watchlist_trigger_task(watchlist_token: str) -> str:
    message = ProcessWatchListTrigger(watchlist_token=watchlist_token)
    return _run_async(
        _execute_locked(f"watchlist:{watchlist_token}", message, timeout=60 * 30)
    )


@celery_app.task(name="messages.update_rdap_servers")
def update_rdap_servers_task() -> str:
    return _run_async(
        _execute_locked("rdap:directory", UpdateRdapServers(), timeout=60 * 20)
    )
