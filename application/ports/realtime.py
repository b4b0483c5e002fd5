"""
Realtime control-frame DTOs.

Broadcast payloads are delivered verbatim; Envelope only wraps the
server's own control frames on the native WebSocket route
(connected/report/pong/error/ping).
"""
from __future__ import annotations

from typing import Any
from pydantic import BaseModel, Field

from core.response import utc_now_z


class Envelope(BaseModel):
    """Server control frame.

    Fields:
      - type: connected/report/ping/pong/error
      - data: payload (JSON-serializable)
      - ts: server-generated UTC timestamp (ISO8601 with Z)
    """

    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    ts: str = Field(default_factory=utc_now_z)


__all__ = ["Envelope"]
