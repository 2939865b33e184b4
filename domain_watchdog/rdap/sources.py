"""External directory sources: fetching and parsing.

Three authoritative lists feed the lookup directory:

    IANA TLD list        https://data.iana.org/TLD/tlds-alpha-by-domain.txt
    ICANN gTLD list      https://www.icann.org/resources/registries/gtlds/v2/gtlds.json
    IANA RDAP bootstrap  https://data.iana.org/rdap/dns.json  (RFC 9224)

Parsers are pure and turn a payload into ``DirectoryEntry`` objects for one
source; fetchers retry transient transport failures.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from domain_watchdog.core.config import settings
from domain_watchdog.core.exceptions import ParseError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import DirectoryEntry, DirectorySource, TldType


logger = get_logger("rdap.sources")

INFRASTRUCTURE_TLDS = frozenset({"arpa"})
SPONSORED_TLDS = frozenset({
    "aero", "asia", "cat", "coop", "edu", "gov", "int", "jobs",
    "mil", "museum", "post", "tel", "travel", "xxx",
})


def classify_tld(tld: str) -> TldType:
    """Best-effort TLD category from its label alone."""
    if tld in INFRASTRUCTURE_TLDS:
        return TldType.ITLD
    if tld in SPONSORED_TLDS:
        return TldType.STLD
    if len(tld) == 2 and tld.isalpha():
        return TldType.CCTLD
    return TldType.GTLD


# =============================================================================
# PARSERS
# =============================================================================


def parse_iana_tld_list(text: str, refreshed_at: datetime | None = None) -> list[DirectoryEntry]:
    """Parse ``tlds-alpha-by-domain.txt`` (one uppercase label per line, '#' comments)."""
    refreshed_at = refreshed_at or datetime.now(UTC)
    entries = []
    for line in text.splitlines():
        label = line.strip()
        if not label or label.startswith("#"):
            continue
        if " " in label or "." in label:
            raise ParseError(f"Unexpected line in IANA TLD list: {label!r}")
        tld = label.lower()
        entries.append(
            DirectoryEntry(
                tld=tld,
                source=DirectorySource.IANA_TLD_LIST,
                tld_type=classify_tld(tld),
                refreshed_at=refreshed_at,
            )
        )
    if not entries:
        raise ParseError("IANA TLD list is empty")
    return entries


def parse_icann_gtld_list(
    payload: dict[str, Any], refreshed_at: datetime | None = None
) -> list[DirectoryEntry]:
    """Parse ICANN's ``gtlds.json``; removed gTLDs are skipped."""
    refreshed_at = refreshed_at or datetime.now(UTC)
    if not isinstance(payload, dict) or not isinstance(payload.get("gTLDs"), list):
        raise ParseError("ICANN gTLD list has no 'gTLDs' array")

    entries = []
    for item in payload["gTLDs"]:
        if not isinstance(item, dict) or not item.get("gTLD"):
            raise ParseError(f"Malformed gTLD record: {item!r}")
        if item.get("removalDate") or item.get("contractTerminated"):
            continue
        tld = str(item["gTLD"]).lower()
        entries.append(
            DirectoryEntry(
                tld=tld,
                source=DirectorySource.ICANN_GTLD_LIST,
                registry_operator=item.get("registryOperator") or None,
                tld_type=TldType.STLD if tld in SPONSORED_TLDS else TldType.GTLD,
                refreshed_at=refreshed_at,
            )
        )
    return entries


def parse_rdap_bootstrap(
    payload: dict[str, Any], refreshed_at: datetime | None = None
) -> list[DirectoryEntry]:
    """Parse the RFC 9224 DNS bootstrap file.

    Each service is ``[[tld, ...], [url, ...]]``. HTTPS URLs are listed
    first so the resolver's first endpoint is the secure one.
    """
    refreshed_at = refreshed_at or datetime.now(UTC)
    services = payload.get("services") if isinstance(payload, dict) else None
    if not isinstance(services, list):
        raise ParseError("RDAP bootstrap file has no 'services' array")

    entries = []
    for service in services:
        if (
            not isinstance(service, list)
            or len(service) != 2
            or not all(isinstance(part, list) for part in service)
        ):
            raise ParseError(f"Malformed bootstrap service: {service!r}")
        tlds, urls = service
        ordered = sorted(urls, key=lambda u: not str(u).startswith("https://"))
        for tld in tlds:
            entries.append(
                DirectoryEntry(
                    tld=str(tld),
                    source=DirectorySource.RDAP_BOOTSTRAP,
                    endpoints=tuple(str(u) for u in ordered),
                    refreshed_at=refreshed_at,
                )
            )
    return entries


# =============================================================================
# FETCHERS
# =============================================================================


def build_client(timeout: float | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=timeout or settings.directory_fetch_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
    )


async def fetch(client: httpx.AsyncClient, url: str, attempts: int | None = None) -> httpx.Response:
    """GET ``url``, retrying transport failures with exponential backoff.

    HTTP error statuses are not retried and raise ``httpx.HTTPStatusError``.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts or settings.directory_fetch_attempts),
        wait=wait_exponential_jitter(initial=1, max=10, jitter=1.0),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    ):
        with attempt:
            response = await client.get(url)
            response.raise_for_status()
    logger.debug(f"Fetched {url}", extra={"status": response.status_code})
    return response


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON from {response.request.url}: {e}") from e


async def fetch_iana_tld_list(client: httpx.AsyncClient) -> list[DirectoryEntry]:
    response = await fetch(client, settings.iana_tld_list_url)
    return parse_iana_tld_list(response.text)


async def fetch_icann_gtld_list(client: httpx.AsyncClient) -> list[DirectoryEntry]:
    response = await fetch(client, settings.icann_gtld_list_url)
    return parse_icann_gtld_list(_json(response))


async def fetch_rdap_bootstrap(client: httpx.AsyncClient) -> list[DirectoryEntry]:
    response = await fetch(client, settings.rdap_bootstrap_url)
    return parse_rdap_bootstrap(_json(response))
