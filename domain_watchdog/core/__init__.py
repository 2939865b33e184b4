"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings, settings
from .exceptions import (
    AggregatedRefreshError,
    AppException,
    AuthorizationError,
    ExternalServiceError,
    JobError,
    NoRouteError,
    NotFoundError,
    ParseError,
    PolicyViolationError,
    ProtocolError,
    RdapError,
    TransportError,
)


__all__ = [
    "AggregatedRefreshError",
    "AppException",
    "AuthorizationError",
    "ExternalServiceError",
    "JobError",
    "NoRouteError",
    "NotFoundError",
    "ParseError",
    "PolicyViolationError",
    "ProtocolError",
    "RdapError",
    "Settings",
    "TransportError",
    "get_settings",
    "settings",
]
