"""WebSocket route: a native entry point for the three broadcast events.

- accept        -> mint a connection id, remember the socket, register it
- {"action": "send", "message": ...} -> publish to every registered connection
- close         -> unregister (idempotent with dispatcher-driven pruning)

Heartbeat/idle-timeout handling detects half-open connections: the server
sends a JSON ping on idle and closes after configurable missed pongs.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from api.dependencies import get_ws_components
from application.ports.realtime import Envelope
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


logger = get_logger(__name__)


router = APIRouter(prefix="/ws", tags=["WebSocket"])


def _error(message: str, **extra: Any) -> dict:
    return Envelope(type="error", data={"message": message, **extra}).model_dump()


def _parse_frame(raw: str) -> dict | None:
    try:
        msg = json.loads(raw)
    except ValueError:
        return None
    return msg if isinstance(msg, dict) else None


@router.websocket("")
async def websocket_endpoint(ws: WebSocket) -> None:
    try:
        registry, dispatcher, connections = get_ws_components(ws)
    except BusinessException as exc:
        logger.error("ws_not_ready", error=exc.message)
        await ws.close(code=1011)
        return

    await ws.accept()
    connection_id = uuid4().hex
    log = logger.bind(connection_id=connection_id)

    await connections.add(connection_id, ws)
    try:
        await registry.register(connection_id)
    except BusinessException as exc:
        log.error("ws_register_failed", error_type=exc.error_type, error=exc.message)
        await connections.remove(connection_id)
        await ws.send_json(_error(exc.message, error_type=exc.error_type))
        await ws.close(code=1011)
        return

    await connections.send_json(
        connection_id,
        Envelope(type="connected", data={"connection_id": connection_id}).model_dump(),
    )
    try:
        idle_ping_interval = float(settings.REALTIME_WS_IDLE_PING_INTERVAL_S)
        pong_grace = float(settings.REALTIME_WS_PONG_GRACE_S)
        missed_limit = int(settings.REALTIME_WS_MISSED_PING_LIMIT)

        missed = 0
        while True:
            if idle_ping_interval and idle_ping_interval > 0:
                try:
                    raw = await asyncio.wait_for(ws.receive_text(), timeout=idle_ping_interval)
                except asyncio.TimeoutError:
                    # Idle: send ping and wait a short grace for response
                    missed += 1
                    try:
                        await connections.send_json(connection_id, Envelope(type="ping").model_dump())
                    except (RuntimeError, OSError):
                        break
                    try:
                        raw = await asyncio.wait_for(ws.receive_text(), timeout=pong_grace)
                        missed = 0
                    except asyncio.TimeoutError:
                        if missed > missed_limit:
                            log.info("ws_idle_timeout", missed=missed)
                            await ws.close(code=1001)
                            break
                        continue
            else:
                raw = await ws.receive_text()

            msg = _parse_frame(raw)
            if msg is None:
                await connections.send_json(connection_id, _error("invalid frame, expected a JSON object"))
                continue

            action = str(msg.get("action") or msg.get("type") or "").lower()
            if action == "send":
                try:
                    report = await dispatcher.publish(msg.get("message"))
                except BusinessException as exc:
                    await connections.send_json(
                        connection_id, _error(exc.message, error_type=exc.error_type)
                    )
                    continue
                await connections.send_json(
                    connection_id, Envelope(type="report", data=report.as_dict()).model_dump()
                )
            elif action == "ping":
                await connections.send_json(connection_id, Envelope(type="pong").model_dump())
            elif action == "pong":
                continue
            else:
                await connections.send_json(connection_id, _error("unknown action", action=action))
    except WebSocketDisconnect:
        log.info("ws_client_disconnected")
    except Exception as exc:
        log.error("ws_error", error=str(exc), exc_info=True)
    finally:
        await connections.remove(connection_id)
        try:
            await registry.unregister(connection_id)
        except BusinessException as exc:
            # a stale entry is pruned by the next broadcast
            log.warning("ws_unregister_failed", error=exc.message)
