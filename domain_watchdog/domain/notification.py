"""Outbound notification contract.

The core decides whether to notify and with which data; rendering and
delivery belong to a ``NotificationSender``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain_watchdog.domain.watchlist import User


class NotificationTemplate(str, Enum):
    DOMAIN_EVENT = "domain_event"
    DOMAIN_UPDATE_ERROR = "domain_update_error"


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient: User
    template: NotificationTemplate
    context: dict[str, Any] = Field(default_factory=dict)
