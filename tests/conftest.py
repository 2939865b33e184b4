"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from factories import NOW, RDAP_BASE, RecordingSender, make_record

from domain_watchdog.domain import (
    DirectoryEntry,
    DirectorySource,
    Domain,
    DomainEventKind,
    User,
    WatchList,
)
from domain_watchdog.rdap.directory import LookupDirectory
from domain_watchdog.repositories import (
    InMemoryDomainRepository,
    InMemoryUserRepository,
    InMemoryWatchListRepository,
)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def directory() -> LookupDirectory:
    directory = LookupDirectory()
    directory.replace_all(
        DirectorySource.RDAP_BOOTSTRAP,
        [
            DirectoryEntry(tld="com", source=DirectorySource.RDAP_BOOTSTRAP, endpoints=(RDAP_BASE,)),
            DirectoryEntry(tld="net", source=DirectorySource.RDAP_BOOTSTRAP, endpoints=(RDAP_BASE,)),
        ],
    )
    return directory


@pytest.fixture
def user() -> User:
    return User(id=1, email="owner@example.org", notify_url="json://localhost/hook")


@pytest.fixture
def users(user: User) -> InMemoryUserRepository:
    return InMemoryUserRepository([user])


@pytest.fixture
def watchlist(user: User) -> WatchList:
    return WatchList(
        token="wl-1",
        user_id=user.id,
        name="Production",
        domains={"example.com"},
        triggers=set(DomainEventKind),
    )


@pytest.fixture
def watchlists(watchlist: WatchList) -> InMemoryWatchListRepository:
    return InMemoryWatchListRepository([watchlist])


@pytest.fixture
def domains() -> InMemoryDomainRepository:
    return InMemoryDomainRepository()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def stale_domain() -> Domain:
    """Tracked domain whose snapshot is older than the refresh interval."""
    return Domain(
        ldh_name="example.com",
        snapshot=make_record(),
        refreshed_at=NOW - timedelta(days=8),
    )
