"""Domain models for strongly-typed data throughout the application.

Usage:
    from domain_watchdog.domain import DomainRecord, WatchList, DomainEventKind

    record = DomainRecord(ldh_name="example.com", registrar="Example Registrar")
    data = record.model_dump()
"""

from domain_watchdog.domain.directory import (
    DirectoryEntry,
    DirectorySource,
    TldInfo,
    TldType,
)
from domain_watchdog.domain.messages import (
    Message,
    ProcessDomainTrigger,
    ProcessWatchListTrigger,
    UpdateRdapServers,
)
from domain_watchdog.domain.notification import Notification, NotificationTemplate
from domain_watchdog.domain.record import (
    DELETION_PHASE_STATUSES,
    DomainRecord,
    EntityRef,
    as_utc,
)
from domain_watchdog.domain.watchlist import (
    Domain,
    DomainEvent,
    DomainEventKind,
    User,
    WatchList,
    normalize_ldh_name,
)

__all__ = [
    # Directory
    "DirectoryEntry",
    "DirectorySource",
    "TldInfo",
    "TldType",
    # Messages
    "Message",
    "ProcessDomainTrigger",
    "ProcessWatchListTrigger",
    "UpdateRdapServers",
    # Notifications
    "Notification",
    "NotificationTemplate",
    # Records
    "DELETION_PHASE_STATUSES",
    "DomainRecord",
    "EntityRef",
    "as_utc",
    # Watchlists
    "Domain",
    "DomainEvent",
    "DomainEventKind",
    "User",
    "WatchList",
    "normalize_ldh_name",
]
