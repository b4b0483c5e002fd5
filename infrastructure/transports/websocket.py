"""In-process WebSocket transport.

Delivers to sockets held by this process's ConnectionManager. Gone means
this process can prove the socket is finished: it is not in the table, its
state is no longer CONNECTED, or the send reported a disconnect. Only valid
when the registry and the sockets live in the same process.
"""
from __future__ import annotations

from starlette.websockets import WebSocketDisconnect, WebSocketState

from application.ports.transport import DeliveryResult, TransportPort
from core.logging_config import get_logger
from domain.connection.entity import Message
from infrastructure.realtime.connection_manager import ConnectionManager


logger = get_logger(__name__)


def is_ws_connected(ws) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class WebSocketTransport(TransportPort):
    name = "websocket"

    def __init__(self, connections: ConnectionManager) -> None:
        self._conn = connections

    @property
    def connections(self) -> ConnectionManager:
        return self._conn

    async def send(self, connection_id: str, message: Message) -> DeliveryResult:  # type: ignore[override]
        entry = await self._conn.get(connection_id)
        if entry is None:
            return DeliveryResult.gone(connection_id, "unknown_connection")
        ws, send_lock = entry
        if not is_ws_connected(ws):
            return DeliveryResult.gone(connection_id, "socket_closed")

        # one frame at a time per socket; concurrent publishes queue here
        async with send_lock:
            try:
                if isinstance(message, bytes):
                    await ws.send_bytes(message)
                else:
                    await ws.send_text(message)
            except WebSocketDisconnect as exc:
                return DeliveryResult.gone(connection_id, f"disconnect_{exc.code}")
            except RuntimeError as exc:
                # Starlette raises RuntimeError once a close frame has gone out
                if not is_ws_connected(ws):
                    return DeliveryResult.gone(connection_id, "socket_closed")
                logger.warning("ws_send_failed", connection_id=connection_id, error=str(exc))
                return DeliveryResult.transient(connection_id, "RuntimeError")
            except OSError as exc:
                logger.warning("ws_send_failed", connection_id=connection_id, error=str(exc))
                return DeliveryResult.transient(connection_id, type(exc).__name__)
        return DeliveryResult.delivered(connection_id)

    async def aclose(self) -> None:  # type: ignore[override]
        await self._conn.close_all()
