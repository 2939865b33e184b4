"""Lookup directory domain models.

One ``DirectoryEntry`` per TLD and per source. Only entries coming from the
RDAP bootstrap carry endpoints; the IANA and ICANN lists contribute TLD
metadata (type, registry operator).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DirectorySource(str, Enum):
    """External lists feeding the directory, in refresh order."""

    IANA_TLD_LIST = "iana_tld_list"
    ICANN_GTLD_LIST = "icann_gtld_list"
    RDAP_BOOTSTRAP = "rdap_bootstrap"


class TldType(str, Enum):
    """TLD categories as used by IANA."""

    GTLD = "gTLD"
    CCTLD = "ccTLD"
    STLD = "sTLD"
    ITLD = "iTLD"


class DirectoryEntry(BaseModel):
    """A TLD known to one directory source."""

    model_config = ConfigDict(frozen=True)

    tld: str
    source: DirectorySource
    endpoints: tuple[str, ...] = ()
    refreshed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    registry_operator: str | None = None
    tld_type: TldType | None = None

    @field_validator("tld")
    @classmethod
    def _normalize_tld(cls, v: str) -> str:
        v = v.strip().strip(".").lower()
        try:
            return v.encode("idna").decode("ascii")
        except UnicodeError:
            return v

    @field_validator("endpoints", mode="before")
    @classmethod
    def _ensure_trailing_slash(cls, v):
        return tuple(url if url.endswith("/") else f"{url}/" for url in v)


class TldInfo(BaseModel):
    """Merged view of a TLD across all directory sources."""

    tld: str
    endpoints: tuple[str, ...] = ()
    registry_operator: str | None = None
    tld_type: TldType | None = None
    sources: frozenset[DirectorySource] = Field(default_factory=frozenset)
