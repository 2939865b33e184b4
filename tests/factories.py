"""Test data builders and collaborator doubles."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from domain_watchdog.domain import DomainRecord, EntityRef, Notification
from domain_watchdog.jobs.bus import InMemoryMessageBus
from domain_watchdog.jobs.handlers import Dependencies
from domain_watchdog.repositories import (
    InMemoryDomainRepository,
    InMemoryUserRepository,
    InMemoryWatchListRepository,
)


RDAP_BASE = "https://rdap.registry.test/"
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


class RecordingSender:
    """NotificationSender double that keeps every notification it is given."""

    def __init__(self, result: bool = True, error: BaseException | None = None):
        self.result = result
        self.error = error
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> bool:
        self.sent.append(notification)
        if self.error is not None:
            raise self.error
        return self.result


def make_record(ldh_name: str = "example.com", **overrides: Any) -> DomainRecord:
    fields: dict[str, Any] = {
        "ldh_name": ldh_name,
        "handle": f"{ldh_name.upper()}-REG",
        "registrar": "Example Registrar, Inc.",
        "expires_at": NOW + timedelta(days=365),
        "last_changed_at": NOW - timedelta(days=100),
        "statuses": {"client transfer prohibited"},
        "nameservers": {"ns1.example.net", "ns2.example.net"},
        "entities": (
            EntityRef(handle="292", roles=frozenset({"registrar"}), name="Example Registrar, Inc."),
            EntityRef(handle="C-1", roles=frozenset({"registrant"})),
        ),
    }
    fields.update(overrides)
    return DomainRecord(**fields)


def rdap_payload(
    ldh_name: str = "example.com",
    registrar: str = "Example Registrar, Inc.",
    expiration: str = "2026-06-01T12:00:00Z",
    statuses: list[str] | None = None,
    extra_events: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """A minimal RFC 9083 domain object."""
    return {
        "objectClassName": "domain",
        "handle": f"{ldh_name.upper()}-REG",
        "ldhName": ldh_name.upper(),
        "status": statuses if statuses is not None else ["client transfer prohibited"],
        "events": [
            {"eventAction": "registration", "eventDate": "1995-08-14T04:00:00Z"},
            {"eventAction": "expiration", "eventDate": expiration},
            {"eventAction": "last changed", "eventDate": "2025-02-20T10:00:00Z"},
            *(extra_events or []),
        ],
        "entities": [
            {
                "objectClassName": "entity",
                "handle": "292",
                "roles": ["registrar"],
                "vcardArray": ["vcard", [["version", {}, "text", "4.0"], ["fn", {}, "text", registrar]]],
                "entities": [
                    {"objectClassName": "entity", "handle": "ABUSE-1", "roles": ["abuse"]},
                ],
            },
        ],
        "nameservers": [
            {"objectClassName": "nameserver", "ldhName": "NS1.EXAMPLE.NET"},
            {"objectClassName": "nameserver", "ldhName": "NS2.EXAMPLE.NET"},
        ],
    }




def build_dependencies() -> Dependencies:
    """Dependencies factory loadable by import path."""
    return Dependencies(
        watchlists=InMemoryWatchListRepository(),
        domains=InMemoryDomainRepository(),
        users=InMemoryUserRepository(),
        sender=RecordingSender(),
        bus=InMemoryMessageBus(),
    )


def build_wrong_type() -> object:
    return object()
