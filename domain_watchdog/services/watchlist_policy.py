"""Watchlist creation rules for limited-mode deployments.

When ``limited_features`` is on, a new watchlist is rejected if:

    1. it tracks ``limit_max_watchlist_domains`` domains or more
    2. its owner already has ``limit_max_watchlist`` watchlists or more
    3. one of its domains is already tracked in another of the owner's
       watchlists

The checks and the insert run under a per-user lock so two concurrent
creations cannot both pass the checks.
"""

from __future__ import annotations

import asyncio
import weakref

from domain_watchdog.core.config import settings
from domain_watchdog.core.exceptions import PolicyViolationError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import User, WatchList
from domain_watchdog.repositories import WatchListRepository


logger = get_logger("services.watchlist_policy")


class WatchListPolicy:
    def __init__(
        self,
        watchlists: WatchListRepository,
        limited_features: bool | None = None,
        max_watchlists: int | None = None,
        max_domains: int | None = None,
    ):
        self.watchlists = watchlists
        self.limited_features = (
            settings.limited_features if limited_features is None else limited_features
        )
        self.max_watchlists = (
            settings.limit_max_watchlist if max_watchlists is None else max_watchlists
        )
        self.max_domains = (
            settings.limit_max_watchlist_domains if max_domains is None else max_domains
        )
        # Entries vanish once no creation for the user holds the lock
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def create_watchlist(self, user: User, draft: WatchList) -> WatchList:
        """Persist ``draft`` as a watchlist owned by ``user``.

        Raises:
            PolicyViolationError: a limited-mode rule is breached; nothing
                is persisted
        """
        watchlist = draft.model_copy(update={"user_id": user.id})
        if not self.limited_features:
            return await self.watchlists.add(watchlist)

        async with self._lock_for(user.id):
            await self.check(user, watchlist)
            return await self.watchlists.add(watchlist)

    async def check(self, user: User, watchlist: WatchList) -> None:
        if len(watchlist.domains) >= self.max_domains:
            logger.warning(
                f"User {user.identifier} tried to create a Watchlist with too many domain names",
                extra={"user_id": user.id, "domains": len(watchlist.domains)},
            )
            raise PolicyViolationError(
                f"You cannot create a Watchlist with more than {self.max_domains} domain names",
                rule="max_domains",
            )

        existing = await self.watchlists.list_for_user(user.id)
        if len(existing) >= self.max_watchlists:
            logger.warning(
                f"User {user.identifier} tried to create more than {self.max_watchlists} Watchlists",
                extra={"user_id": user.id, "watchlists": len(existing)},
            )
            raise PolicyViolationError(
                f"You cannot create more than {self.max_watchlists} Watchlists",
                rule="max_watchlists",
            )

        tracked = set().union(*(w.domains for w in existing if w.token != watchlist.token))
        for ldh_name in sorted(watchlist.domains):
            if ldh_name in tracked:
                logger.warning(
                    f"User {user.identifier} tried to create a watchlist with domain name "
                    f"{ldh_name}. It is forbidden to register the same domain name twice "
                    "with limited mode",
                    extra={"user_id": user.id, "ldh_name": ldh_name},
                )
                raise PolicyViolationError(
                    f"It is forbidden to register the same domain name twice "
                    f"with limited mode ({ldh_name})",
                    rule="duplicate_domain",
                )
