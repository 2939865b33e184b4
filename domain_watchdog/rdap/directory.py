"""TLD -> RDAP endpoint directory.

The directory keeps one immutable mapping per source. Refreshing a source
builds a complete new mapping and swaps it in with a single assignment, so a
reader sees either the previous or the new partition, never a partial one.
There is no incremental per-entry update.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from domain_watchdog.core.exceptions import NoRouteError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import DirectoryEntry, DirectorySource, TldInfo


logger = get_logger("rdap.directory")

_EMPTY: Mapping[str, DirectoryEntry] = MappingProxyType({})


class LookupDirectory:
    """Full-replace snapshot of TLD routing data."""

    def __init__(self) -> None:
        self._partitions: Mapping[DirectorySource, Mapping[str, DirectoryEntry]] = (
            MappingProxyType({})
        )

    def replace_all(
        self, source: DirectorySource, entries: Iterable[DirectoryEntry]
    ) -> int:
        """Replace every entry of ``source`` with ``entries``.

        A later entry for the same TLD supersedes an earlier one. Returns the
        number of TLDs now held for the source.
        """
        source = DirectorySource(source)
        fresh: dict[str, DirectoryEntry] = {}
        for entry in entries:
            if entry.source != source:
                raise ValueError(
                    f"Entry for '{entry.tld}' comes from {entry.source.value}, "
                    f"expected {source.value}"
                )
            fresh[entry.tld] = entry

        partitions = dict(self._partitions)
        partitions[source] = MappingProxyType(fresh)
        self._partitions = MappingProxyType(partitions)

        logger.info(
            "Directory partition replaced",
            extra={"source": source.value, "tlds": len(fresh)},
        )
        return len(fresh)

    def route_for(self, tld: str) -> list[str]:
        """Ordered RDAP base URLs for ``tld``.

        Raises:
            NoRouteError: if no bootstrap entry with endpoints exists
        """
        tld = tld.strip().strip(".").lower()
        entry = self._partitions.get(DirectorySource.RDAP_BOOTSTRAP, _EMPTY).get(tld)
        if entry is None or not entry.endpoints:
            raise NoRouteError(tld)
        return list(entry.endpoints)

    def entries(self, source: DirectorySource) -> Mapping[str, DirectoryEntry]:
        return self._partitions.get(DirectorySource(source), _EMPTY)

    def refreshed_at(self, source: DirectorySource) -> datetime | None:
        partition = self.entries(source)
        if not partition:
            return None
        return max(entry.refreshed_at for entry in partition.values())

    def describe(self, tld: str) -> TldInfo | None:
        """Merge what every source knows about ``tld``."""
        tld = tld.strip().strip(".").lower()
        info: dict[str, Any] = {"tld": tld, "sources": set()}
        # Later sources win; the ICANN list is more specific than the IANA list
        for source in DirectorySource:
            entry = self._partitions.get(source, _EMPTY).get(tld)
            if entry is None:
                continue
            info["sources"].add(source)
            if entry.endpoints:
                info["endpoints"] = entry.endpoints
            if entry.registry_operator:
                info["registry_operator"] = entry.registry_operator
            if entry.tld_type:
                info["tld_type"] = entry.tld_type
        if not info["sources"]:
            return None
        info["sources"] = frozenset(info["sources"])
        return TldInfo(**info)

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """JSON-compatible copy of every partition."""
        return {
            source.value: [entry.model_dump(mode="json") for entry in partition.values()]
            for source, partition in self._partitions.items()
        }

    def restore(self, snapshot: Mapping[str, list[Mapping[str, Any]]]) -> None:
        """Replace every partition present in ``snapshot``."""
        for source_name, raw_entries in snapshot.items():
            source = DirectorySource(source_name)
            self.replace_all(
                source, (DirectoryEntry.model_validate(raw) for raw in raw_entries)
            )

    def __len__(self) -> int:
        return len(self._partitions.get(DirectorySource.RDAP_BOOTSTRAP, _EMPTY))
