"""RDAP record domain models.

Canonical, registry-independent shape of a domain's registration data as
returned by an RDAP server. A ``DomainRecord`` is both the result of a fresh
lookup and the snapshot stored on a tracked ``Domain``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# RDAP statuses (RFC 8056 mapping of EPP statuses) marking a domain on its way out
DELETION_PHASE_STATUSES = frozenset({"pending delete", "redemption period"})


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class EntityRef(BaseModel):
    """An RDAP entity attached to a domain (registrant, registrar, ...)."""

    model_config = ConfigDict(frozen=True)

    handle: str
    roles: frozenset[str] = Field(default_factory=frozenset)
    name: str | None = Field(None, description="vCard 'fn' when present")

    @property
    def is_registrar(self) -> bool:
        return "registrar" in self.roles


class DomainRecord(BaseModel):
    """Registration data of a single domain."""

    model_config = ConfigDict(frozen=True)

    ldh_name: str = Field(..., description="Lowercase LDH domain name")
    handle: str | None = Field(None, description="Registry object handle")
    registrar: str | None = Field(None, description="Sponsoring registrar identity")
    expires_at: datetime | None = Field(None, description="RDAP 'expiration' event date")
    last_changed_at: datetime | None = Field(None, description="RDAP 'last changed' event date")
    deletion_at: datetime | None = Field(None, description="RDAP 'deletion' event date")
    statuses: frozenset[str] = Field(default_factory=frozenset)
    nameservers: frozenset[str] = Field(default_factory=frozenset)
    entities: tuple[EntityRef, ...] = ()

    @field_validator("ldh_name")
    @classmethod
    def _lower_name(cls, v: str) -> str:
        return v.strip().rstrip(".").lower()

    @field_validator("statuses", "nameservers", mode="before")
    @classmethod
    def _lower_set(cls, v):
        if v is None:
            return frozenset()
        return frozenset(str(item).strip().rstrip(".").lower() for item in v)

    @field_validator("expires_at", "last_changed_at", "deletion_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @property
    def is_resolvable(self) -> bool:
        """False once the registry has started deleting the domain."""
        if self.deletion_at is not None:
            return False
        return not (self.statuses & DELETION_PHASE_STATUSES)

    def contact_entities(self) -> frozenset[EntityRef]:
        """Entities other than the registrar, order-insensitive."""
        return frozenset(e for e in self.entities if not e.is_registrar)

