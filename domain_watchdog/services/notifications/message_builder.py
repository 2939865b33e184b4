"""Message building for notifications.

Turns a (template, context) pair into a plain-text title and body. Context
keys are the ones produced by ``NotificationDispatcher``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from domain_watchdog.domain import DomainEventKind, NotificationTemplate


_EVENT_TITLES = {
    DomainEventKind.LAST_CHANGED.value: "Domain name updated: {ldh_name}",
    DomainEventKind.TRANSFER.value: "Domain name transferred: {ldh_name}",
    DomainEventKind.EXPIRATION.value: "Expiration date changed: {ldh_name}",
    DomainEventKind.DELETION.value: "Domain name being deleted: {ldh_name}",
}

_EVENT_MESSAGES = {
    DomainEventKind.LAST_CHANGED.value: "The registration data of {ldh_name} has changed.",
    DomainEventKind.TRANSFER.value: "{ldh_name} has been transferred to another registrar.",
    DomainEventKind.EXPIRATION.value: "The expiration date of {ldh_name} has changed.",
    DomainEventKind.DELETION.value: "The registry has started deleting {ldh_name}.",
}


def build_notification_message(
    template: NotificationTemplate | str,
    context: dict[str, Any],
) -> tuple[str, str]:
    """Build notification title and body.

    Args:
        template: The notification template key
        context: Data to render

    Returns:
        Tuple of (title, body)
    """
    template = NotificationTemplate(template)
    ldh_name = context.get("ldh_name", "unknown domain")

    if template is NotificationTemplate.DOMAIN_UPDATE_ERROR:
        title = "An error occurred while updating a domain name"
        body_parts = [
            f"The registry could not be queried for {ldh_name}.",
            f"Registry status: {context.get('registry_status', 'N/A')}",
        ]
    else:
        event = context.get("event", "")
        title = _EVENT_TITLES.get(event, "Domain name event: {ldh_name}").format(ldh_name=ldh_name)
        body_parts = [
            _EVENT_MESSAGES.get(event, "Event '{event}' on {ldh_name}.").format(
                ldh_name=ldh_name, event=event
            )
        ]
        if context.get("registrar"):
            body_parts.append(f"Registrar: {context['registrar']}")
        if context.get("previous_registrar") and event == DomainEventKind.TRANSFER.value:
            body_parts.append(f"Previous registrar: {context['previous_registrar']}")
        if context.get("expires_at"):
            body_parts.append(f"Expires: {format_datetime(context['expires_at'])}")
        if context.get("occurred_at"):
            body_parts.append(f"Detected: {format_datetime(context['occurred_at'])}")

    if context.get("watchlist_name"):
        body_parts.append(f"Watchlist: {context['watchlist_name']}")

    return title, "\n".join(body_parts)


def format_datetime(value: Any) -> str:
    """Format a datetime (or ISO string) for display."""
    if value is None:
        return "N/A"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime("%Y-%m-%d %H:%M UTC")
