import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager, suppress
from datetime import date
from typing import Protocol
from uuid import uuid4

import redis.asyncio as redis

from backend.app.scheduling.errors import AssignmentInProgress

logger = logging.getLogger(__name__)

# Delete the key only if it still holds our token.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

# Push the expiry forward only while the key still holds our token.
_RENEW_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("pexpire", KEYS[1], ARGV[2])
end
return 0
"""


def lock_key(restaurant_id: str, day: date) -> str:
    return f"assign-lock:{restaurant_id}:{day.strftime('%Y%m%d')}"


class DateLock(Protocol):
    def hold(self, restaurant_id: str, day: date) -> AbstractAsyncContextManager[None]: ...


class RedisDateLock:
    """Advisory per-(restaurant, date) lock shared by every API worker.

    The key expires after ``ttl_seconds`` unless renewed; while held it is
    renewed every third of the TTL so long runs keep it.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: float):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def ttl_ms(self) -> int:
        return round(self.ttl_seconds * 1000)

    async def _keep_alive(self, key: str, token: str) -> None:
        while True:
            await asyncio.sleep(self.ttl_seconds / 3)
            renewed = await self.client.eval(_RENEW_SCRIPT, 1, key, token, self.ttl_ms)
            if not renewed:
                logger.warning("Assignment lock %s expired while the run was still going", key)
                return

    @asynccontextmanager
    async def hold(self, restaurant_id: str, day: date) -> AsyncIterator[None]:
        key = lock_key(restaurant_id, day)
        token = str(uuid4())
        acquired = await self.client.set(key, token, nx=True, px=self.ttl_ms)
        if not acquired:
            logger.warning("Assignment lock %s is held by another run", key)
            raise AssignmentInProgress(f"Assignment already running for {day.isoformat()}")

        renewer = asyncio.create_task(self._keep_alive(key, token))
        try:
            yield
        finally:
            renewer.cancel()
            with suppress(asyncio.CancelledError):
                await renewer
            released = await self.client.eval(_RELEASE_SCRIPT, 1, key, token)
            if released == 0:
                logger.warning("Assignment lock %s was lost before release", key)


class LocalDateLock:
    """In-process equivalent of :class:`RedisDateLock` for a single worker."""

    def __init__(self) -> None:
        self._held: set[str] = set()
        self._guard = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, restaurant_id: str, day: date) -> AsyncIterator[None]:
        key = lock_key(restaurant_id, day)
        async with self._guard:
            if key in self._held:
                logger.warning("Assignment lock %s is held by another run", key)
                raise AssignmentInProgress(f"Assignment already running for {day.isoformat()}")
            self._held.add(key)
        try:
            yield
        finally:
            self._held.discard(key)
