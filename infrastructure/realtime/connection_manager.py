"""In-process WebSocket connection manager.

Keeps track of the sockets this process accepted, keyed by connection id.
Which ids exist overall is the registry's business; this table only knows
how to reach the ones held locally.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

from fastapi import WebSocket

from core.logging_config import get_logger


logger = get_logger(__name__)


class ConnectionManager:
    """Manage per-process WebSocket connections."""

    def __init__(self) -> None:
        # connection_id -> (WebSocket, per-socket send lock)
        self._sockets: Dict[str, Tuple[WebSocket, asyncio.Lock]] = {}
        self._lock = asyncio.Lock()

    async def add(self, connection_id: str, ws: WebSocket) -> None:
        async with self._lock:
            self._sockets[connection_id] = (ws, asyncio.Lock())
        logger.info("ws_connected", connection_id=connection_id)

    async def remove(self, connection_id: str) -> None:
        async with self._lock:
            self._sockets.pop(connection_id, None)
        logger.info("ws_disconnected", connection_id=connection_id)

    async def get(self, connection_id: str) -> Optional[Tuple[WebSocket, asyncio.Lock]]:
        async with self._lock:
            return self._sockets.get(connection_id)

    async def send_json(self, connection_id: str, payload: dict) -> bool:
        """Send a control frame, serialized with broadcast frames on the same socket."""
        entry = await self.get(connection_id)
        if entry is None:
            return False
        ws, send_lock = entry
        async with send_lock:
            await ws.send_json(payload)
        return True

    async def ids(self) -> List[str]:
        async with self._lock:
            return list(self._sockets)

    async def close_all(self, code: int = 1001) -> None:
        async with self._lock:
            entries = list(self._sockets.items())
            self._sockets.clear()
        for connection_id, (ws, _send_lock) in entries:
            try:
                await ws.close(code=code)
            except RuntimeError:
                # already closed by the peer
                logger.debug("ws_close_skipped", connection_id=connection_id)

    def __len__(self) -> int:
        return len(self._sockets)
