"""Watch trigger scheduling for a single watchlist.

For every tracked domain that is due, the pipeline resolves the domain over
RDAP, diffs the result against the stored snapshot, commits the new
snapshot, notifies subscribed events and publishes a follow-up
``ProcessDomainTrigger``.

A domain is due when its last refresh is at least ``refresh_interval`` old,
or when it is watched closely because its expiration date is near.

Failures stay within their domain:

    ProtocolError              owner gets an update-error notification,
                               the domain is aborted
    TransportError/ParseError  logged, domain skipped this cycle
    NoRouteError               logged, domain skipped this cycle

The pipeline never re-enqueues itself; recurring cycles come from whoever
publishes ``ProcessWatchListTrigger``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from domain_watchdog.core.config import settings
from domain_watchdog.core.exceptions import (
    NoRouteError,
    NotFoundError,
    ParseError,
    ProtocolError,
    TransportError,
)
from domain_watchdog.core.logging import get_logger, trace_context
from domain_watchdog.domain import (
    Domain,
    ProcessDomainTrigger,
    ProcessWatchListTrigger,
    WatchList,
)
from domain_watchdog.jobs.bus import MessageBus
from domain_watchdog.rdap.resolver import RecordResolver
from domain_watchdog.repositories import DomainRepository, WatchListRepository
from domain_watchdog.services.change_detector import ChangeDetector
from domain_watchdog.services.notifications.dispatcher import (
    DispatchStats,
    NotificationDispatcher,
)


logger = get_logger("services.watch_trigger")


# =============================================================================
# ELIGIBILITY
# =============================================================================


def is_to_be_watched_closely(
    domain: Domain,
    now: datetime,
    window: timedelta | None = None,
    min_interval: timedelta | None = None,
) -> bool:
    """Whether a domain close to its expiration date should be re-queried early.

    True when the last refresh is at least ``min_interval`` old and the
    snapshot's expiration date lies within ``window`` of ``now``, before or
    after it.
    """
    window = window if window is not None else timedelta(days=settings.close_watch_window_days)
    min_interval = (
        min_interval
        if min_interval is not None
        else timedelta(hours=settings.close_watch_min_interval_hours)
    )

    if domain.snapshot is None or domain.snapshot.expires_at is None:
        return False
    if domain.refreshed_at is not None and now - domain.refreshed_at < min_interval:
        return False
    return abs(domain.snapshot.expires_at - now) <= window


def is_due(
    domain: Domain,
    now: datetime,
    refresh_interval: timedelta | None = None,
    window: timedelta | None = None,
    min_interval: timedelta | None = None,
) -> bool:
    refresh_interval = (
        refresh_interval
        if refresh_interval is not None
        else timedelta(days=settings.watch_refresh_interval_days)
    )
    if domain.refreshed_at is None or domain.snapshot is None:
        return True
    if now - domain.refreshed_at >= refresh_interval:
        return True
    return is_to_be_watched_closely(domain, now, window=window, min_interval=min_interval)


# =============================================================================
# PIPELINE
# =============================================================================


class DomainOutcome(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ProcessStats:
    eligible: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    events: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    error_notifications: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class WatchTriggerScheduler:
    def __init__(
        self,
        watchlists: WatchListRepository,
        domains: DomainRepository,
        resolver: RecordResolver,
        dispatcher: NotificationDispatcher,
        bus: MessageBus,
        detector: ChangeDetector | None = None,
        clock: Callable[[], datetime] | None = None,
        max_concurrency: int | None = None,
        refresh_interval: timedelta | None = None,
        close_watch_window: timedelta | None = None,
        close_watch_min_interval: timedelta | None = None,
    ):
        self.watchlists = watchlists
        self.domains = domains
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.bus = bus
        self.detector = detector or ChangeDetector()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.max_concurrency = max_concurrency or settings.watch_max_concurrency
        self.refresh_interval = refresh_interval or timedelta(
            days=settings.watch_refresh_interval_days
        )
        self.close_watch_window = close_watch_window or timedelta(
            days=settings.close_watch_window_days
        )
        self.close_watch_min_interval = close_watch_min_interval or timedelta(
            hours=settings.close_watch_min_interval_hours
        )

    def is_eligible(self, domain: Domain, now: datetime) -> bool:
        return is_due(
            domain,
            now,
            refresh_interval=self.refresh_interval,
            window=self.close_watch_window,
            min_interval=self.close_watch_min_interval,
        )

    async def handle(self, message: ProcessWatchListTrigger) -> ProcessStats:
        """Consume a trigger message for one watchlist."""
        with trace_context(message.watchlist_token):
            watchlist = await self.watchlists.get_by_token(message.watchlist_token)
            if watchlist is None:
                raise NotFoundError(
                    message=f"Watchlist {message.watchlist_token} not found",
                    details={"watchlist": message.watchlist_token},
                )
            return await self.process(watchlist)

    async def process(self, watchlist: WatchList) -> ProcessStats:
        now = self.clock()
        tracked = await self.domains.get_many(sorted(watchlist.domains))
        eligible = [d for d in tracked if self.is_eligible(d, now)]
        stats = ProcessStats(eligible=len(eligible))

        logger.info(
            f"Domain names from Watchlist {watchlist.token} will be processed",
            extra={"tracked": len(tracked), "eligible": len(eligible)},
        )
        if not eligible:
            return stats

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def guarded(domain: Domain) -> tuple[DomainOutcome, int, DispatchStats, bool]:
            async with semaphore:
                return await self._process_domain(watchlist, domain)

        results = await asyncio.gather(
            *(guarded(domain) for domain in eligible), return_exceptions=True
        )

        for domain, result in zip(eligible, results):
            if isinstance(result, BaseException):
                # Cancelled or crashed outside the per-domain guard
                logger.error(
                    f"Processing of {domain.ldh_name} aborted: {result!r}",
                    extra={"ldh_name": domain.ldh_name},
                )
                stats.failed += 1
                continue
            outcome, events, dispatched, error_notified = result
            if outcome is DomainOutcome.PROCESSED:
                stats.processed += 1
            elif outcome is DomainOutcome.SKIPPED:
                stats.skipped += 1
            else:
                stats.failed += 1
            stats.events += events
            stats.notifications_sent += dispatched.sent
            stats.notifications_failed += dispatched.failed
            stats.error_notifications += int(error_notified)

        logger.info(
            f"Watchlist {watchlist.token} processed",
            extra=stats.as_dict(),
        )
        return stats

    async def _process_domain(
        self, watchlist: WatchList, domain: Domain
    ) -> tuple[DomainOutcome, int, DispatchStats, bool]:
        ldh_name = domain.ldh_name
        previous = domain.snapshot
        previous_refreshed_at = domain.refreshed_at

        try:
            record = await self.resolver.resolve(ldh_name)
        except ProtocolError as e:
            logger.warning(
                f"RDAP server refused {ldh_name}",
                extra={"ldh_name": ldh_name, "registry_status": e.registry_status},
            )
            notified = await self.dispatcher.notify_error(watchlist, ldh_name, e)
            return DomainOutcome.FAILED, 0, DispatchStats(), notified
        except (TransportError, ParseError, NoRouteError) as e:
            logger.warning(
                f"Skipping {ldh_name} this cycle: {e.message}",
                extra={"ldh_name": ldh_name, "error_code": e.error_code},
            )
            return DomainOutcome.SKIPPED, 0, DispatchStats(), False
        except Exception:
            logger.exception(
                f"Unexpected error while resolving {ldh_name}",
                extra={"ldh_name": ldh_name},
            )
            return DomainOutcome.FAILED, 0, DispatchStats(), False

        events = (
            self.detector.diff(previous, record, now=self.clock())
            if previous is not None
            else []
        )
        committed = await self.domains.commit_snapshot(ldh_name, record, self.clock())

        dispatched = await self.dispatcher.dispatch(
            watchlist, committed, events, previous=previous
        )

        await self.bus.publish(
            ProcessDomainTrigger(
                watchlist_token=watchlist.token,
                ldh_name=ldh_name,
                previous_refreshed_at=previous_refreshed_at,
            )
        )

        if events:
            logger.info(
                f"{len(events)} event(s) detected on {ldh_name}",
                extra={"ldh_name": ldh_name, "events": [e.kind.value for e in events]},
            )
        return DomainOutcome.PROCESSED, len(events), dispatched, False
