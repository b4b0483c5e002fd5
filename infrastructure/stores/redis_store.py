"""Redis SET based ConnectionStore.

All connection ids live in one SET (`{namespace}:{key}`), which gives
uniqueness for free: SADD is insert-or-ignore, SREM is delete-if-exists.
Listing walks the set with SSCAN.
"""
from __future__ import annotations

from typing import AsyncIterator

from redis.exceptions import RedisError

from core.logging_config import get_logger
from domain.common.exceptions import StoreUnavailableException
from domain.connection.store import ConnectionStore
from infrastructure.external.cache import RedisClient


logger = get_logger(__name__)


class RedisConnectionStore(ConnectionStore):
    backend = "redis"

    def __init__(self, client: RedisClient, key: str = "connections") -> None:
        self._client = client
        self._key = key

    async def put(self, connection_id: str) -> None:
        try:
            await self._client.sadd(self._key, connection_id)
        except RedisError as exc:
            logger.error("redis_store_put_failed", connection_id=connection_id, error=str(exc))
            raise StoreUnavailableException("put", backend=self.backend, reason=str(exc)) from exc

    async def delete(self, connection_id: str) -> None:
        try:
            await self._client.srem(self._key, connection_id)
        except RedisError as exc:
            logger.error("redis_store_delete_failed", connection_id=connection_id, error=str(exc))
            raise StoreUnavailableException("delete", backend=self.backend, reason=str(exc)) from exc

    async def scan(self) -> AsyncIterator[str]:
        try:
            async for member in self._client.sscan(self._key):
                yield member
        except RedisError as exc:
            logger.error("redis_store_scan_failed", error=str(exc))
            raise StoreUnavailableException("scan", backend=self.backend, reason=str(exc)) from exc
