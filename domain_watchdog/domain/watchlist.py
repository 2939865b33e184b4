"""Watchlist, tracked domain and domain event models.

Relationships are held as identifiers (watchlist -> domain names,
watchlist -> user id) and resolved through the repositories.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain_watchdog.domain.record import DomainRecord, as_utc


class DomainEventKind(str, Enum):
    """Event kinds a watchlist can subscribe to.

    Values follow the RDAP ``eventAction`` vocabulary.
    """

    LAST_CHANGED = "last changed"
    TRANSFER = "transfer"
    EXPIRATION = "expiration"
    DELETION = "deletion"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", " ").replace("_", " ")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


def normalize_ldh_name(name: str) -> str:
    """Canonical lookup key: lowercase, no trailing dot, IDNA-encoded."""
    name = name.strip().rstrip(".").lower()
    try:
        return name.encode("idna").decode("ascii")
    except UnicodeError:
        return name


class DomainEvent(BaseModel):
    """A detected change on a tracked domain."""

    model_config = ConfigDict(frozen=True)

    ldh_name: str
    kind: DomainEventKind
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Domain(BaseModel):
    """A tracked domain with its last-known registration snapshot."""

    model_config = ConfigDict(frozen=True)

    ldh_name: str
    snapshot: DomainRecord | None = None
    refreshed_at: datetime | None = None

    @field_validator("ldh_name")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_ldh_name(v)

    @field_validator("refreshed_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @property
    def tld(self) -> str:
        return self.ldh_name.rsplit(".", 1)[-1]


class User(BaseModel):
    """Watchlist owner, as seen by the notification layer."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    notify_url: str | None = Field(
        None, description="Apprise URL; defaults to a mailto:// of the e-mail"
    )

    @property
    def delivery_url(self) -> str:
        return self.notify_url or f"mailto://{self.email}"

    @property
    def identifier(self) -> str:
        return self.email


class WatchList(BaseModel):
    """A named set of tracked domains with subscribed trigger kinds."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(default_factory=lambda: str(uuid4()))
    user_id: int
    name: str | None = None
    domains: frozenset[str] = Field(..., min_length=1)
    triggers: frozenset[DomainEventKind] = Field(..., min_length=1)

    @field_validator("domains", mode="before")
    @classmethod
    def _normalize_domains(cls, v):
        return frozenset(normalize_ldh_name(d) for d in v)

    def is_subscribed(self, kind: DomainEventKind) -> bool:
        return kind in self.triggers
