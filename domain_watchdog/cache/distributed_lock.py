"""Single-run guard for Celery tasks, held in Valkey."""

from __future__ import annotations

import uuid

from redis.asyncio import Redis
from redis.exceptions import RedisError

from domain_watchdog.core.logging import get_logger

from .client import get_valkey_client


logger = get_logger("cache.lock")

LOCK_PREFIX = "domain_watchdog:lock"

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    """
    Non-blocking lock shared by every worker process.

    ``acquire`` is a single SET NX with expiry, so a crashed holder frees
    the lock after ``timeout`` seconds. ``release`` only deletes the key
    while it still carries this holder's token.
    """

    def __init__(self, name: str, timeout: int = 30, client: Redis | None = None):
        self.name = name
        self.key = f"{LOCK_PREFIX}:{name}"
        self.timeout = timeout
        self.token = uuid.uuid4().hex
        self._client = client
        self._acquired = False

    async def _get_client(self) -> Redis:
        if self._client is None:
            self._client = await get_valkey_client()
        return self._client

    async def acquire(self) -> bool:
        client = await self._get_client()
        self._acquired = bool(await client.set(self.key, self.token, ex=self.timeout, nx=True))
        if self._acquired:
            logger.debug(f"Lock acquired: {self.name}")
        return self._acquired

    async def release(self) -> bool:
        if not self._acquired:
            return False
        self._acquired = False

        client = await self._get_client()
        try:
            released = await client.eval(_RELEASE_SCRIPT, 1, self.key, self.token)
        except RedisError as e:
            # The key expires on its own
            logger.error(f"Lock release error for {self.name}: {e}", extra={"lock": self.name})
            return False

        if not released:
            logger.warning(f"Lock {self.name} expired or was taken over before release")
        return bool(released)
