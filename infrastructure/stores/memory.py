"""In-memory implementation of ConnectionStore.

Single-process only. Useful for local dev and tests.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable, Optional, Set

from domain.connection.store import ConnectionStore


class InMemoryConnectionStore(ConnectionStore):
    backend = "memory"

    def __init__(self, initial: Optional[Iterable[str]] = None) -> None:
        self._ids: Set[str] = set(initial or ())
        self._lock = asyncio.Lock()

    async def put(self, connection_id: str) -> None:
        async with self._lock:
            self._ids.add(connection_id)

    async def delete(self, connection_id: str) -> None:
        async with self._lock:
            self._ids.discard(connection_id)

    async def scan(self) -> AsyncIterator[str]:
        # Snapshot so concurrent put/delete don't disturb the iteration
        async with self._lock:
            snapshot = list(self._ids)
        for cid in snapshot:
            yield cid

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._ids
