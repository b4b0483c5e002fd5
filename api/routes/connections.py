"""
连接与广播 API 路由 - FastAPI表现层

对应三个外部事件：connect / disconnect / publish。
"""
from fastapi import APIRouter, Depends

from application.dto import (
    AckDTO,
    BroadcastReportDTO,
    ConnectionAckDTO,
    ConnectionListDTO,
    ConnectRequestDTO,
    PublishRequestDTO,
)
from application.services.broadcast_service import BroadcastDispatcher
from api.dependencies import get_dispatcher, get_registry
from core.response import Response as ApiResponse, success_response
from domain.common.exceptions import NoConnectionsException
from domain.connection.registry import ConnectionRegistry


router = APIRouter(tags=["Broadcast"])


@router.post("/connections", summary="注册连接", response_model=ApiResponse[ConnectionAckDTO])
async def connect(
    body: ConnectRequestDTO,
    registry: ConnectionRegistry = Depends(get_registry),
):
    """
    Connect event: register the connection id (idempotent).
    """
    await registry.register(body.connection_id)
    return success_response(data=ConnectionAckDTO(connection_id=body.connection_id))


@router.delete("/connections/{connection_id}", summary="注销连接", response_model=ApiResponse[AckDTO])
async def disconnect(
    connection_id: str,
    registry: ConnectionRegistry = Depends(get_registry),
):
    """
    Disconnect event: remove the connection id. Unknown ids succeed too.
    """
    await registry.unregister(connection_id)
    return success_response(data=AckDTO())


@router.get("/connections", summary="列出连接", response_model=ApiResponse[ConnectionListDTO])
async def list_connections(registry: ConnectionRegistry = Depends(get_registry)):
    try:
        ids = await registry.list_all()
    except NoConnectionsException:
        ids = []
    return success_response(data=ConnectionListDTO(connections=sorted(ids), count=len(ids)))


@router.post("/messages", summary="广播消息", response_model=ApiResponse[BroadcastReportDTO])
async def publish(
    body: PublishRequestDTO,
    dispatcher: BroadcastDispatcher = Depends(get_dispatcher),
):
    """
    Publish event: fan the message out to every registered connection.

    Partial delivery failure is reported in the body, not as an error.
    """
    report = await dispatcher.publish(body.message)
    return success_response(data=BroadcastReportDTO(**report.as_dict()))
