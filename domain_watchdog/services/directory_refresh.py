"""Lookup directory refresh from the IANA and ICANN sources.

Steps run one after another in declaration order. A failing step does not
stop the following ones; once all steps have run, every failure is reported
through a single ``AggregatedRefreshError`` whose cause is the first one.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import httpx

from domain_watchdog.core.exceptions import AggregatedRefreshError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import DirectoryEntry, DirectorySource
from domain_watchdog.rdap import sources
from domain_watchdog.rdap.directory import LookupDirectory


logger = get_logger("services.directory_refresh")

Fetcher = Callable[[httpx.AsyncClient], Awaitable[Sequence[DirectoryEntry]]]


@dataclass(frozen=True)
class RefreshStep:
    name: str
    source: DirectorySource
    fetch: Fetcher


DEFAULT_STEPS: tuple[RefreshStep, ...] = (
    RefreshStep("iana_tld_list", DirectorySource.IANA_TLD_LIST, sources.fetch_iana_tld_list),
    RefreshStep("icann_gtld_list", DirectorySource.ICANN_GTLD_LIST, sources.fetch_icann_gtld_list),
    RefreshStep("rdap_bootstrap", DirectorySource.RDAP_BOOTSTRAP, sources.fetch_rdap_bootstrap),
)


@dataclass
class RefreshStats:
    tlds: dict[str, int] = field(default_factory=dict)
    failed_steps: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.tlds)


class DirectoryRefreshJob:
    def __init__(
        self,
        directory: LookupDirectory,
        steps: Sequence[RefreshStep] | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.directory = directory
        self.steps = tuple(steps) if steps is not None else DEFAULT_STEPS
        self._client = client

    async def run(self) -> RefreshStats:
        """Run every step, then raise if any of them failed.

        Raises:
            AggregatedRefreshError: at least one step failed; successful
                steps have already replaced their partition
        """
        owns_client = self._client is None
        client = self._client or sources.build_client()
        stats = RefreshStats()
        errors: list[tuple[str, BaseException]] = []

        try:
            for step in self.steps:
                try:
                    entries = await step.fetch(client)
                    stats.tlds[step.name] = self.directory.replace_all(step.source, entries)
                except Exception as e:
                    logger.error(
                        f"Directory refresh step '{step.name}' failed: {e}",
                        extra={"step": step.name, "source": step.source.value},
                        exc_info=True,
                    )
                    errors.append((step.name, e))
                    stats.failed_steps.append(step.name)
        finally:
            if owns_client:
                await client.aclose()

        if errors:
            raise AggregatedRefreshError(errors) from errors[0][1]

        logger.info("Lookup directory refreshed", extra={"tlds": stats.tlds})
        return stats
