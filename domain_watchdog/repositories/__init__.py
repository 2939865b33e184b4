"""Repository interfaces and in-memory implementations."""

from domain_watchdog.repositories.base import (
    DomainRepository,
    UserRepository,
    WatchListRepository,
)
from domain_watchdog.repositories.memory import (
    InMemoryDomainRepository,
    InMemoryUserRepository,
    InMemoryWatchListRepository,
)

__all__ = [
    "DomainRepository",
    "InMemoryDomainRepository",
    "InMemoryUserRepository",
    "InMemoryWatchListRepository",
    "UserRepository",
    "WatchListRepository",
]
