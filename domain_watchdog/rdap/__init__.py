"""RDAP routing and lookup."""

from domain_watchdog.rdap.directory import LookupDirectory
from domain_watchdog.rdap.resolver import RecordResolver, parse_domain_record
from domain_watchdog.rdap.store import DirectorySnapshotStore

__all__ = [
    "DirectorySnapshotStore",
    "LookupDirectory",
    "RecordResolver",
    "parse_domain_record",
]
