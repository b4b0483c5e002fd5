"""
Connection registry: the authoritative set of reachable connection ids.

The registry keeps no state of its own between calls. Every operation goes
straight to the ConnectionStore so that a store mutated by another process
(or another node) is always observed as it is.
"""
from __future__ import annotations

from typing import Any, List

from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidIdentifierException,
    NoConnectionsException,
)
from domain.connection.entity import validate_connection_id
from domain.connection.store import ConnectionStore


logger = get_logger(__name__)


class ConnectionRegistry:
    def __init__(self, store: ConnectionStore) -> None:
        self._store = store

    @property
    def store(self) -> ConnectionStore:
        return self._store

    async def register(self, connection_id: Any) -> None:
        """Insert-or-ignore. Raises InvalidIdentifier / StoreUnavailable."""
        cid = validate_connection_id(connection_id)
        await self._store.put(cid)
        logger.info("connection_registered", connection_id=cid, backend=self._store.backend)

    async def unregister(self, connection_id: Any) -> None:
        """Delete-if-exists; duplicate or racing removals succeed."""
        cid = validate_connection_id(connection_id)
        await self._store.delete(cid)
        logger.info("connection_unregistered", connection_id=cid, backend=self._store.backend)

    async def list_all(self) -> List[str]:
        """Full listing in unspecified order.

        Raises NoConnectionsException when nothing is registered so callers
        can short-circuit, and StoreUnavailableException on backend failure.
        """
        ids: List[str] = []
        seen: set[str] = set()
        async for raw in self._store.scan():
            try:
                cid = validate_connection_id(raw)
            except InvalidIdentifierException:
                logger.warning("connection_listing_skipped_invalid", value=repr(raw))
                continue
            if cid in seen:
                continue
            seen.add(cid)
            ids.append(cid)
        if not ids:
            raise NoConnectionsException()
        return ids
