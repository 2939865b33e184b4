"""Valkey-backed shared state: connection management and distributed locks."""

from .client import close_valkey_client, get_valkey_client
from .distributed_lock import DistributedLock

__all__ = [
    "DistributedLock",
    "close_valkey_client",
    "get_valkey_client",
]
