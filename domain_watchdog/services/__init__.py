"""Domain watch services."""

from domain_watchdog.services.change_detector import ChangeDetector, detect_kinds, diff
from domain_watchdog.services.directory_refresh import (
    DEFAULT_STEPS,
    DirectoryRefreshJob,
    RefreshStats,
    RefreshStep,
)
from domain_watchdog.services.watch_trigger import (
    ProcessStats,
    WatchTriggerScheduler,
    is_due,
    is_to_be_watched_closely,
)
from domain_watchdog.services.watchlist_policy import WatchListPolicy

__all__ = [
    "ChangeDetector",
    "DEFAULT_STEPS",
    "DirectoryRefreshJob",
    "ProcessStats",
    "RefreshStats",
    "RefreshStep",
    "WatchListPolicy",
    "WatchTriggerScheduler",
    "detect_kinds",
    "diff",
    "is_due",
    "is_to_be_watched_closely",
]
