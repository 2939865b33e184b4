"""Repository interfaces used by the watch pipeline.

Storage mechanics live outside the core; components receive these
repositories explicitly and look entities up by token, name or id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from domain_watchdog.domain import Domain, DomainRecord, User, WatchList


@runtime_checkable
class WatchListRepository(Protocol):
    async def get_by_token(self, token: str) -> WatchList | None: ...

    async def list_for_user(self, user_id: int) -> list[WatchList]: ...

    async def add(self, watchlist: WatchList) -> WatchList: ...


@runtime_checkable
class DomainRepository(Protocol):
    async def get(self, ldh_name: str) -> Domain | None: ...

    async def get_many(self, ldh_names: list[str]) -> list[Domain]: ...

    async def commit_snapshot(
        self, ldh_name: str, snapshot: DomainRecord, refreshed_at: datetime
    ) -> Domain:
        """Atomically replace the stored snapshot and refresh timestamp."""
        ...


@runtime_checkable
class UserRepository(Protocol):
    async def get(self, user_id: int) -> User | None: ...
