"""
API依赖项 - 从应用状态中取出广播组件
"""
from fastapi import Request, WebSocket
from starlette.requests import HTTPConnection

from application.services.broadcast_service import BroadcastDispatcher
from domain.common.exceptions import ConfigurationException
from domain.connection.registry import ConnectionRegistry
from infrastructure.realtime.connection_manager import ConnectionManager


def _state_attr(conn: HTTPConnection, name: str):
    value = getattr(conn.app.state, name, None)
    if value is None:
        raise ConfigurationException(
            f"{name} not initialized. Ensure lifespan sets app.state.{name}."
        )
    return value


async def get_registry(request: Request) -> ConnectionRegistry:
    return _state_attr(request, "registry")


async def get_dispatcher(request: Request) -> BroadcastDispatcher:
    return _state_attr(request, "dispatcher")


def get_ws_components(ws: WebSocket) -> tuple[ConnectionRegistry, BroadcastDispatcher, ConnectionManager]:
    return (
        _state_attr(ws, "registry"),
        _state_attr(ws, "dispatcher"),
        _state_attr(ws, "connections"),
    )
