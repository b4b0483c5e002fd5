"""Delivery transports (in-process WebSocket, API Gateway management API)."""

from .apigateway import ApiGatewayTransport
from .websocket import WebSocketTransport

__all__ = ["ApiGatewayTransport", "WebSocketTransport"]
