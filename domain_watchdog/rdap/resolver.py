"""RDAP record resolver.

Routes a domain to its registry's RDAP server through the lookup directory,
queries it and parses the answer into a ``DomainRecord``.

Failures are classified for the caller:

    TransportError  connection, DNS or timeout failure (no HTTP response)
    ProtocolError   HTTP error status from the RDAP server (404, 5xx, ...)
    ParseError      response body is not a usable RDAP domain object
    NoRouteError    the TLD has no known RDAP server

The watch pipeline notifies the user on ``ProtocolError`` only; keep the
classes distinct.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from domain_watchdog.core.config import settings
from domain_watchdog.core.exceptions import ParseError, ProtocolError, TransportError
from domain_watchdog.core.logging import get_logger
from domain_watchdog.domain import DomainRecord, EntityRef, normalize_ldh_name
from domain_watchdog.rdap.directory import LookupDirectory


logger = get_logger("rdap.resolver")

RDAP_MEDIA_TYPE = "application/rdap+json"


class RecordResolver:
    """Resolve domain names to ``DomainRecord`` objects."""

    def __init__(
        self,
        directory: LookupDirectory,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.directory = directory
        self.timeout = timeout or settings.rdap_timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Accept": RDAP_MEDIA_TYPE, "User-Agent": settings.user_agent},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RecordResolver:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def resolve(self, ldh_name: str) -> DomainRecord:
        ldh_name = normalize_ldh_name(ldh_name)
        tld = ldh_name.rsplit(".", 1)[-1]
        endpoint = self.directory.route_for(tld)[0]
        url = f"{endpoint}domain/{ldh_name}"

        try:
            response = await asyncio.wait_for(
                self.client.get(url, headers={"Accept": RDAP_MEDIA_TYPE}),
                timeout=self.timeout,
            )
        except httpx.DecodingError as e:
            raise ParseError(
                f"RDAP response for {ldh_name} could not be decoded: {e!r}", ldh_name=ldh_name
            ) from e
        # Connection failures, timeouts and redirect loops
        except (httpx.RequestError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"RDAP query for {ldh_name} failed: {e!r}", ldh_name=ldh_name
            ) from e

        if response.status_code >= 400:
            raise ProtocolError(
                f"RDAP server answered {response.status_code} for {ldh_name}",
                ldh_name=ldh_name,
                registry_status=response.status_code,
                details={"url": str(response.url)},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"RDAP response for {ldh_name} is not JSON", ldh_name=ldh_name) from e

        record = parse_domain_record(payload, expected_name=ldh_name)
        logger.debug(
            "Domain resolved",
            extra={"ldh_name": ldh_name, "endpoint": endpoint, "registrar": record.registrar},
        )
        return record


# =============================================================================
# RDAP PARSING (RFC 9083)
# =============================================================================


def _parse_date(value: Any, ldh_name: str) -> datetime:
    if not isinstance(value, str):
        raise ParseError(f"Invalid eventDate {value!r}", ldh_name=ldh_name)
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ParseError(f"Invalid eventDate {value!r}", ldh_name=ldh_name) from e


def _vcard_fn(entity: dict[str, Any]) -> str | None:
    """Extract the formatted name from a jCard (RFC 7095)."""
    vcard = entity.get("vcardArray")
    if not isinstance(vcard, list) or len(vcard) != 2 or not isinstance(vcard[1], list):
        return None
    for prop in vcard[1]:
        if isinstance(prop, list) and len(prop) >= 4 and prop[0] == "fn":
            value = prop[3]
            return str(value).strip() or None
    return None


def _walk_entities(raw_entities: Any) -> list[dict[str, Any]]:
    """Flatten nested entities (a registrar's abuse contact, ...)."""
    flat: list[dict[str, Any]] = []
    stack = list(raw_entities or [])
    while stack:
        entity = stack.pop(0)
        if not isinstance(entity, dict):
            continue
        flat.append(entity)
        stack.extend(entity.get("entities") or [])
    return flat


def parse_domain_record(payload: Any, expected_name: str | None = None) -> DomainRecord:
    """Build a ``DomainRecord`` from an RDAP domain object."""
    ldh_name = expected_name or ""
    if not isinstance(payload, dict):
        raise ParseError("RDAP response is not an object", ldh_name=ldh_name)

    object_class = payload.get("objectClassName")
    if object_class is not None and object_class != "domain":
        raise ParseError(f"Unexpected objectClassName {object_class!r}", ldh_name=ldh_name)

    raw_name = payload.get("ldhName")
    if not isinstance(raw_name, str) or not raw_name:
        raise ParseError("RDAP response has no ldhName", ldh_name=ldh_name)
    name = normalize_ldh_name(raw_name)
    if expected_name and name != expected_name:
        raise ParseError(
            f"RDAP response is for {name}, expected {expected_name}", ldh_name=ldh_name
        )

    dates: dict[str, datetime] = {}
    for event in payload.get("events") or []:
        if not isinstance(event, dict):
            raise ParseError(f"Malformed event {event!r}", ldh_name=name)
        action = str(event.get("eventAction", "")).lower()
        if action in ("expiration", "last changed", "deletion"):
            occurred = _parse_date(event.get("eventDate"), name)
            # Keep the latest date when a registry repeats an action
            if action not in dates or occurred > dates[action]:
                dates[action] = occurred

    registrar = None
    entities = []
    for entity in _walk_entities(payload.get("entities")):
        roles = frozenset(str(r).lower() for r in entity.get("roles") or [])
        handle = str(entity.get("handle") or "").strip()
        fn = _vcard_fn(entity)
        if "registrar" in roles and registrar is None:
            registrar = fn or handle or None
        if handle or fn:
            entities.append(EntityRef(handle=handle or fn, roles=roles, name=fn))

    nameservers = []
    for ns in payload.get("nameservers") or []:
        if isinstance(ns, dict) and isinstance(ns.get("ldhName"), str):
            nameservers.append(ns["ldhName"])

    statuses = payload.get("status") or []
    if not isinstance(statuses, list):
        raise ParseError("RDAP 'status' is not an array", ldh_name=name)

    try:
        return DomainRecord(
            ldh_name=name,
            handle=payload.get("handle"),
            registrar=registrar,
            expires_at=dates.get("expiration"),
            last_changed_at=dates.get("last changed"),
            deletion_at=dates.get("deletion"),
            statuses=statuses,
            nameservers=nameservers,
            entities=tuple(entities),
        )
    except ValidationError as e:
        raise ParseError(f"RDAP response does not fit a domain record: {e}", ldh_name=name) from e
