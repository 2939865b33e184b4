"""In-memory repositories.

Used by tests and single-process deployments. Entities are immutable, so a
commit is a single dict assignment of a new ``Domain``: concurrent readers
see either the old or the new snapshot, never a mix.
"""

from __future__ import annotations

from datetime import datetime

from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import (
    Domain,
    DomainRecord,
    User,
    WatchList,
    normalize_ldh_name,
)


logger = get_logger("repositories.memory")


class InMemoryWatchListRepository:
    def __init__(self, watchlists: list[WatchList] | None = None):
        self._by_token: dict[str, WatchList] = {}
        for watchlist in watchlists or []:
            self._by_token[watchlist.token] = watchlist

    async def get_by_token(self, token: str) -> WatchList | None:
        return self._by_token.get(token)

    async def list_for_user(self, user_id: int) -> list[WatchList]:
        return [wl for wl in self._by_token.values() if wl.user_id == user_id]

    async def add(self, watchlist: WatchList) -> WatchList:
        self._by_token[watchlist.token] = watchlist
        logger.debug("Watchlist stored", extra={"watchlist": watchlist.token})
        return watchlist

    def __len__(self) -> int:
        return len(self._by_token)


class InMemoryDomainRepository:
    def __init__(self, domains: list[Domain] | None = None):
        self._domains: dict[str, Domain] = {}
        for domain in domains or []:
            self._domains[domain.ldh_name] = domain

    async def get(self, ldh_name: str) -> Domain | None:
        return self._domains.get(normalize_ldh_name(ldh_name))

    async def get_many(self, ldh_names: list[str]) -> list[Domain]:
        result = []
        for name in ldh_names:
            key = normalize_ldh_name(name)
            # Tracked but never looked up yet
            result.append(self._domains.get(key) or Domain(ldh_name=key))
        return result

    async def commit_snapshot(
        self, ldh_name: str, snapshot: DomainRecord, refreshed_at: datetime
    ) -> Domain:
        domain = Domain(ldh_name=ldh_name, snapshot=snapshot, refreshed_at=refreshed_at)
        self._domains[domain.ldh_name] = domain
        return domain


class InMemoryUserRepository:
    def __init__(self, users: list[User] | None = None):
        self._users: dict[int, User] = {u.id: u for u in users or []}

    async def get(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def add(self, user: User) -> User:
        self._users[user.id] = user
        return user
