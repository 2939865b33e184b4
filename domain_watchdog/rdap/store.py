"""Directory snapshot persistence in Valkey.

Celery workers are separate processes; the refresh job saves the whole
directory as one JSON value (a single SET, so readers never load a half
written snapshot) and the watch pipeline loads it before resolving.
"""

from __future__ import annotations

import json

from redis.asyncio import Redis

from domain_watchdog.cache.client import get_valkey_client
from domain_watchdog.core.logging import get_logger
from domain_watchdog.rdap.directory import LookupDirectory


logger = get_logger("rdap.store")

SNAPSHOT_KEY = "domain_watchdog:rdap:directory"


class DirectorySnapshotStore:
    def __init__(self, client: Redis | None = None, key: str = SNAPSHOT_KEY):
        self._client = client
        self.key = key

    async def _get_client(self) -> Redis:
        if self._client is None:
            self._client = await get_valkey_client()
        return self._client

    async def save(self, directory: LookupDirectory) -> None:
        client = await self._get_client()
        payload = json.dumps(directory.snapshot())
        await client.set(self.key, payload)
        logger.info("Directory snapshot saved", extra={"tlds": len(directory)})

    async def load(self, directory: LookupDirectory | None = None) -> LookupDirectory:
        """Load the stored snapshot into ``directory`` (a new one by default).

        An absent snapshot leaves the directory empty; every lookup will then
        fail with ``NoRouteError`` until the refresh job has run.
        """
        directory = directory if directory is not None else LookupDirectory()
        client = await self._get_client()
        raw = await client.get(self.key)
        if raw is None:
            logger.warning("No directory snapshot stored yet")
            return directory
        directory.restore(json.loads(raw))
        return directory
