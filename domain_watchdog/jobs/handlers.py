"""Message consumers.

Each consumer builds its collaborators from the configured ``Dependencies``
and runs one unit of work. Register them by importing this module.

Workers get their repositories from the factory named by the
``DEPENDENCIES_FACTORY`` setting (``"package.module:callable"``). Without it
the in-memory defaults are used and every trigger for an unknown watchlist
fails with ``NotFoundError``.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field

from domain_watchdog.core.config import settings
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import ProcessWatchListTrigger, UpdateRdapServers
from domain_watchdog.jobs.bus import CeleryMessageBus, MessageBus
from domain_watchdog.jobs.registry import register_handler
from domain_watchdog.rdap.resolver import RecordResolver
from domain_watchdog.rdap.store import DirectorySnapshotStore
from domain_watchdog.repositories import (
    DomainRepository,
    InMemoryDomainRepository,
    InMemoryUserRepository,
    InMemoryWatchListRepository,
    UserRepository,
    WatchListRepository,
)
from domain_watchdog.services.directory_refresh import DirectoryRefreshJob
from domain_watchdog.services.notifications import (
    AppriseNotificationSender,
    NotificationDispatcher,
    NotificationSender,
)
from domain_watchdog.services.watch_trigger import WatchTriggerScheduler


logger = get_logger("jobs.handlers")


@dataclass
class Dependencies:
    watchlists: WatchListRepository = field(default_factory=InMemoryWatchListRepository)
    domains: DomainRepository = field(default_factory=InMemoryDomainRepository)
    users: UserRepository = field(default_factory=InMemoryUserRepository)
    sender: NotificationSender = field(default_factory=AppriseNotificationSender)
    bus: MessageBus = field(default_factory=CeleryMessageBus)
    directory_store: DirectorySnapshotStore = field(default_factory=DirectorySnapshotStore)


_dependencies: Dependencies | None = None


def configure(dependencies: Dependencies | None) -> None:
    """Install the collaborators used by every consumer in this process.

    ``None`` resets to the defaults on next use.
    """
    global _dependencies
    _dependencies = dependencies


def load_dependencies(factory_path: str | None) -> Dependencies:
    """Build ``Dependencies`` from a ``module:callable`` import path."""
    if not factory_path:
        logger.warning("No dependencies factory configured, using in-memory repositories")
        return Dependencies()

    module_name, _, attr = factory_path.partition(":")
    if not attr:
        raise ValueError(f"Invalid dependencies factory {factory_path!r}, expected module:callable")
    factory = getattr(importlib.import_module(module_name), attr)
    dependencies = factory()
    if not isinstance(dependencies, Dependencies):
        raise TypeError(f"{factory_path} returned {type(dependencies).__name__}, not Dependencies")
    logger.info("Dependencies loaded", extra={"factory": factory_path})
    return dependencies


def get_dependencies() -> Dependencies:
    global _dependencies
    if _dependencies is None:
        _dependencies = load_dependencies(settings.dependencies_factory)
    return _dependencies


@register_handler(ProcessWatchListTrigger.MESSAGE_NAME)
async def process_watchlist_trigger(message: ProcessWatchListTrigger) -> str:
    deps = get_dependencies()
    directory = await deps.directory_store.load()

    async with RecordResolver(directory) as resolver:
        scheduler = WatchTriggerScheduler(
            watchlists=deps.watchlists,
            domains=deps.domains,
            resolver=resolver,
            dispatcher=NotificationDispatcher(deps.sender, deps.users),
            bus=deps.bus,
        )
        stats = await scheduler.handle(message)

    return (
        f"Watchlist {message.watchlist_token}: {stats.processed}/{stats.eligible} processed, "
        f"{stats.skipped} skipped, {stats.failed} failed, {stats.events} events"
    )


@register_handler(UpdateRdapServers.MESSAGE_NAME)
async def update_rdap_servers(message: UpdateRdapServers) -> str:
    deps = get_dependencies()
    # Partitions of failing steps keep their previous content
    directory = await deps.directory_store.load()
    try:
        stats = await DirectoryRefreshJob(directory).run()
    finally:
        await deps.directory_store.save(directory)

    return f"Directory refreshed: {stats.tlds}"
