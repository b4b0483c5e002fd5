"""
连接领域实体 - 连接标识与消息载荷的业务规则
"""
from typing import Any, Union

from domain.common.exceptions import EmptyMessageException, InvalidIdentifierException


# Opaque payload; text is sent as a text frame, bytes as a binary frame.
Message = Union[str, bytes]


def validate_connection_id(value: Any) -> str:
    """业务规则：连接ID必须是非空字符串"""
    if value is None:
        raise InvalidIdentifierException(None)
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifierException(value)
    return value


def validate_message(value: Any) -> Message:
    """业务规则：消息必须存在（内容不做解析）"""
    if value is None or not isinstance(value, (str, bytes)) or len(value) == 0:
        raise EmptyMessageException()
    return value

