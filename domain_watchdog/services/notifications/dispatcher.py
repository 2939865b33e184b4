"""Notification dispatching for detected domain events.

One notification per subscribed event, each send isolated: a failure or
timeout is logged and counted, and the next notification still goes out.
Nothing raised by the sender escapes ``dispatch`` or ``notify_error``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from domain_watchdog.core.config import settings
from domain_watchdog.core.exceptions import ProtocolError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import (
    Domain,
    DomainEvent,
    DomainRecord,
    Notification,
    NotificationTemplate,
    User,
    WatchList,
)
from domain_watchdog.repositories import UserRepository
from domain_watchdog.services.notifications.sender import NotificationSender


logger = get_logger("notifications.dispatcher")


@dataclass
class DispatchStats:
    matched: int = 0
    sent: int = 0
    failed: int = 0


class NotificationDispatcher:
    def __init__(
        self,
        sender: NotificationSender,
        users: UserRepository,
        timeout: float | None = None,
    ):
        self.sender = sender
        self.users = users
        self.timeout = timeout or settings.notification_timeout_seconds

    async def dispatch(
        self,
        watchlist: WatchList,
        domain: Domain,
        events: Sequence[DomainEvent],
        previous: DomainRecord | None = None,
    ) -> DispatchStats:
        """Notify the watchlist owner of every subscribed event."""
        matching = [e for e in events if watchlist.is_subscribed(e.kind)]
        stats = DispatchStats(matched=len(matching))
        if not matching:
            return stats

        owner = await self._owner(watchlist)
        if owner is None:
            stats.failed = len(matching)
            return stats

        for event in matching:
            notification = Notification(
                recipient=owner,
                template=NotificationTemplate.DOMAIN_EVENT,
                context=_event_context(watchlist, domain, event, previous),
            )
            if await self._send(notification, ldh_name=domain.ldh_name, kind=event.kind.value):
                stats.sent += 1
            else:
                stats.failed += 1

        return stats

    async def notify_error(
        self, watchlist: WatchList, ldh_name: str, error: ProtocolError
    ) -> bool:
        """Tell the owner a tracked domain could not be refreshed."""
        owner = await self._owner(watchlist)
        if owner is None:
            return False

        logger.info(
            f"An update error notification is sent to user {owner.identifier}",
            extra={"ldh_name": ldh_name, "registry_status": error.registry_status},
        )
        notification = Notification(
            recipient=owner,
            template=NotificationTemplate.DOMAIN_UPDATE_ERROR,
            context={
                "ldh_name": ldh_name,
                "watchlist_name": watchlist.name,
                "watchlist_token": watchlist.token,
                "registry_status": error.registry_status,
                "error": error.message,
            },
        )
        return await self._send(notification, ldh_name=ldh_name, kind="error")

    async def _owner(self, watchlist: WatchList) -> User | None:
        try:
            owner = await self.users.get(watchlist.user_id)
        except Exception:
            logger.exception(
                "Could not load watchlist owner",
                extra={"watchlist": watchlist.token, "user_id": watchlist.user_id},
            )
            return None
        if owner is None:
            logger.error(
                "Watchlist owner not found",
                extra={"watchlist": watchlist.token, "user_id": watchlist.user_id},
            )
        return owner

    async def _send(self, notification: Notification, ldh_name: str, kind: str) -> bool:
        try:
            delivered = await asyncio.wait_for(
                self.sender.send(notification), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Notification timed out",
                extra={"ldh_name": ldh_name, "kind": kind, "timeout": self.timeout},
            )
            return False
        except Exception:
            logger.exception(
                "Notification send failed",
                extra={"ldh_name": ldh_name, "kind": kind},
            )
            return False

        if not delivered:
            logger.warning(
                "Notification not delivered",
                extra={"ldh_name": ldh_name, "kind": kind},
            )
        return bool(delivered)


def _event_context(
    watchlist: WatchList,
    domain: Domain,
    event: DomainEvent,
    previous: DomainRecord | None,
) -> dict:
    snapshot = domain.snapshot
    return {
        "ldh_name": domain.ldh_name,
        "event": event.kind.value,
        "occurred_at": event.occurred_at.isoformat(),
        "watchlist_name": watchlist.name,
        "watchlist_token": watchlist.token,
        "registrar": snapshot.registrar if snapshot else None,
        "previous_registrar": previous.registrar if previous else None,
        "expires_at": snapshot.expires_at.isoformat() if snapshot and snapshot.expires_at else None,
    }
