"""Change detection between two registration snapshots.

Pure comparison, no I/O. At most one event per kind, emitted in the
declaration order of ``DomainEventKind``:

    transfer      registrar identity differs
    expiration    expiration date differs
    deletion      resolvable -> not resolvable
    last changed  a monitored field differs (statuses, nameservers,
                  contacts, RDAP 'last changed' date) and none of the
                  kinds above applies

Identical snapshots produce no events.
"""

from __future__ import annotations

from datetime import UTC, datetime

from domain_watchdog.domain import DomainEvent, DomainEventKind, DomainRecord


def detect_kinds(previous: DomainRecord, current: DomainRecord) -> set[DomainEventKind]:
    kinds: set[DomainEventKind] = set()

    if previous.registrar != current.registrar:
        kinds.add(DomainEventKind.TRANSFER)

    if previous.expires_at != current.expires_at:
        kinds.add(DomainEventKind.EXPIRATION)

    if previous.is_resolvable and not current.is_resolvable:
        kinds.add(DomainEventKind.DELETION)

    # Side effects of a specific change are not reported twice
    if kinds:
        return kinds

    if (
        previous.nameservers != current.nameservers
        or previous.contact_entities() != current.contact_entities()
        or previous.last_changed_at != current.last_changed_at
        or previous.statuses != current.statuses
        or previous.deletion_at != current.deletion_at
    ):
        kinds.add(DomainEventKind.LAST_CHANGED)

    return kinds


def diff(
    previous: DomainRecord,
    current: DomainRecord,
    now: datetime | None = None,
) -> list[DomainEvent]:
    """Events explaining how ``current`` differs from ``previous``."""
    if previous == current:
        return []

    occurred_at = now or datetime.now(UTC)
    kinds = detect_kinds(previous, current)
    return [
        DomainEvent(ldh_name=current.ldh_name, kind=kind, occurred_at=occurred_at)
        for kind in DomainEventKind
        if kind in kinds
    ]


class ChangeDetector:
    """Object wrapper so the pipeline can be given an alternative detector."""

    def diff(
        self,
        previous: DomainRecord,
        current: DomainRecord,
        now: datetime | None = None,
    ) -> list[DomainEvent]:
        return diff(previous, current, now=now)
