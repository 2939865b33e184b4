"""Notification package: dispatching, message building and Apprise delivery.

Usage:
    from domain_watchdog.services.notifications import (
        AppriseNotificationSender,
        NotificationDispatcher,
    )

    dispatcher = NotificationDispatcher(AppriseNotificationSender(), users)
    await dispatcher.dispatch(watchlist, domain, events)
"""

from domain_watchdog.services.notifications.dispatcher import (
    DispatchStats,
    NotificationDispatcher,
)
from domain_watchdog.services.notifications.message_builder import (
    build_notification_message,
    format_datetime,
)
from domain_watchdog.services.notifications.sender import (
    AppriseNotificationSender,
    NotificationSender,
    send_via_apprise,
)

__all__ = [
    # Dispatcher
    "DispatchStats",
    "NotificationDispatcher",
    # Message building
    "build_notification_message",
    "format_datetime",
    # Sender
    "AppriseNotificationSender",
    "NotificationSender",
    "send_via_apprise",
]
