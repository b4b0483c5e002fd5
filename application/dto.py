"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field
from typing import Optional

from core.response import utc_now_z


class DTOBase(BaseModel):
    """Base DTO."""


class ConnectRequestDTO(DTOBase):
    """连接注册请求；ID 校验由领域层完成，以便返回 InvalidIdentifier"""
    connection_id: Optional[str] = Field(None, description="连接ID（由传输层在建连时提供）")


class PublishRequestDTO(DTOBase):
    """广播请求；空消息由领域层拒绝（EmptyMessage）"""
    message: Optional[str] = Field(None, description="原样投递给所有连接的消息")


class AckDTO(DTOBase):
    """操作确认"""
    timestamp: str = Field(default_factory=utc_now_z)


class ConnectionAckDTO(AckDTO):
    connection_id: str


class ConnectionListDTO(DTOBase):
    connections: list[str]
    count: int


class BroadcastReportDTO(AckDTO):
    """一次广播的统计：attempted = delivered + pruned + failed"""
    attempted: int
    delivered: int
    pruned: int
    failed: int
    prune_errors: int = 0
    duration_ms: float = 0.0
