"""Messages exchanged with the task queue.

Each message is consumed by exactly one handler registered under
``MESSAGE_NAME`` (see ``domain_watchdog.jobs.registry``).
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    MESSAGE_NAME: ClassVar[str] = ""


class ProcessWatchListTrigger(Message):
    """Run one scheduling cycle for a watchlist."""

    MESSAGE_NAME: ClassVar[str] = "process_watchlist_trigger"

    watchlist_token: str


class ProcessDomainTrigger(Message):
    """Follow-up emitted once a domain of a watchlist has been refreshed."""

    MESSAGE_NAME: ClassVar[str] = "process_domain_trigger"

    watchlist_token: str
    ldh_name: str
    previous_refreshed_at: datetime | None = None


class UpdateRdapServers(Message):
    """Rebuild the lookup directory from its external sources."""

    MESSAGE_NAME: ClassVar[str] = "update_rdap_servers"
